"""
测试 core.engine.reconciliation - 对账日志
"""
import logging

from frontdesk.core.engine.reconciliation import ReconciliationLog


class TestReconciliationLog:
    def test_record(self, caplog):
        """测试记录问题并写 ERROR 日志"""
        log = ReconciliationLog()
        with caplog.at_level(logging.ERROR, logger="frontdesk.core.engine.reconciliation"):
            issue = log.record("check_in", "mark_room_occupied", error="PMS down",
                               reservation_id="RSV-1", room_number="1205", card_id="CARD-1001")

        assert issue.issue_id.startswith("REC-")
        assert issue.flow == "check_in"
        assert issue.resolved is False
        assert log.get(issue.issue_id) is issue
        assert "mark_room_occupied" in caplog.text

    def test_list_open_and_resolve(self):
        log = ReconciliationLog()
        first = log.record("check_out", "revoke_card", error="timeout")
        second = log.record("check_out", "mark_room_cleaning", error="timeout")

        resolved = log.resolve(first.issue_id, "duty-manager")

        assert resolved.resolved is True
        assert resolved.resolved_by == "duty-manager"
        assert resolved.resolved_at is not None
        assert log.list_open() == [second]
        assert len(log.list_all()) == 2

    def test_resolve_unknown_returns_none(self):
        log = ReconciliationLog()
        assert log.resolve("REC-missing", "someone") is None
        assert log.get("REC-missing") is None

    def test_max_issues(self):
        """测试只保留最近的问题"""
        log = ReconciliationLog(max_issues=3)
        for i in range(5):
            log.record("check_in", f"step_{i}", error="x")
        assert [i.step for i in log.list_all()] == ["step_2", "step_3", "step_4"]

    def test_to_dict(self):
        log = ReconciliationLog()
        issue = log.record("check_in", "issue_card", error="boom", extra={"attempt": 1})
        data = issue.to_dict()
        assert data["step"] == "issue_card"
        assert data["resolved_at"] is None
        assert data["extra"] == {"attempt": 1}
        assert isinstance(data["created_at"], str)

    def test_clear(self):
        log = ReconciliationLog()
        log.record("check_in", "issue_card", error="boom")
        log.clear()
        assert log.list_all() == []
