"""
数据模型：ORM 本体对象、Pydantic 模式、生命周期状态机、会话状态
"""
