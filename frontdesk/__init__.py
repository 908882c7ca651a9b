"""
FrontDesk - 酒店前台出入住编排

入住：查询预订 → 身份证扫描 → 人脸识别 → 分配房间 → 发放房卡
退房：查询在住 → 核查账单 → 结算 → 注销房卡 → 更新系统
"""
__version__ = "0.1.0"
