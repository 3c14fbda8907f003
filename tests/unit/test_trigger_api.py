import pytest

from aquafeed.domain.enums import DispatchStatus
from aquafeed.domain.use_cases.dispatch_reminders_use_case import DispatchResult
from aquafeed.infrastructure.web.trigger_api import create_app


class StubDispatcher:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
    def execute(self):
        if self.error:
            raise self.error
        return self.result


def _client(dispatcher):
    app = create_app(lambda: dispatcher)
    app.testing = True
    return app.test_client()


@pytest.mark.parametrize("status,code", [
    (DispatchStatus.OK, 200),
    (DispatchStatus.NO_APPROVED_USERS, 200),
    (DispatchStatus.THROTTLED, 429),
])
def test_rota_devolve_status_da_varredura(status, code):
    resp = _client(StubDispatcher(DispatchResult(status=status, candidates=2, sent=1, skipped=1))).get(
        "/api/feeding/alerts")
    assert resp.status_code == code
    body = resp.get_json()
    assert body["status"] == status.value
    assert body["sent"] == 1 and body["skipped"] == 1


def test_erro_inesperado_vira_500():
    resp = _client(StubDispatcher(error=RuntimeError("boom"))).get("/api/feeding/alerts")
    assert resp.status_code == 500
    assert resp.get_json()["status"] == "error"


def test_health():
    resp = _client(StubDispatcher()).get("/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok"}
