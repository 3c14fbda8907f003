import smtplib

import pytest

from aquafeed.domain.enums import DispatchStatus
from aquafeed.domain.exceptions import TransientIOError
from aquafeed.domain.use_cases.dispatch_reminders_use_case import DispatchResult
from aquafeed.infrastructure.notifications.email_notifier import (
    EmailConfig, EmailNotifier, LoggingNotifier, build_notifier,
)
from aquafeed.infrastructure.scheduler.reminder_service import JOB_ID, ReminderService


class FakeScheduler:
    instances = []

    def __init__(self):
        self.jobs = []
        self.running = False
        self.shutdowns = 0
        FakeScheduler.instances.append(self)
    def add_job(self, func, trigger, **kw):
        self.jobs.append((func, trigger, kw))
    def start(self):
        self.running = True
    def shutdown(self, wait=True):
        self.running = False
        self.shutdowns += 1


class CountingDispatcher:
    calls = 0

    def execute(self):
        CountingDispatcher.calls += 1
        return DispatchResult(status=DispatchStatus.OK, sent=1)


def test_start_registra_o_job_uma_unica_vez():
    FakeScheduler.instances.clear()
    svc = ReminderService(CountingDispatcher, interval_minutes=15, scheduler_factory=FakeScheduler)
    assert svc.start() is True
    assert svc.start() is False
    assert len(FakeScheduler.instances) == 1
    sched = FakeScheduler.instances[0]
    assert len(sched.jobs) == 1
    _, trigger, kw = sched.jobs[0]
    assert trigger == "interval" and kw["minutes"] == 15 and kw["id"] == JOB_ID
    assert svc.started


def test_stop_e_reinicio():
    FakeScheduler.instances.clear()
    svc = ReminderService(CountingDispatcher, scheduler_factory=FakeScheduler)
    assert svc.stop() is False
    svc.start()
    assert svc.stop() is True
    assert FakeScheduler.instances[0].shutdowns == 1
    assert not svc.started
    assert svc.start() is True
    assert len(FakeScheduler.instances) == 2


def test_run_once_e_job_agendado():
    CountingDispatcher.calls = 0
    svc = ReminderService(CountingDispatcher, scheduler_factory=FakeScheduler)
    assert svc.run_once().sent == 1
    svc._job()
    assert CountingDispatcher.calls == 2
    assert svc.last_result.status is DispatchStatus.OK


def test_job_com_erro_nao_derruba_o_agendador():
    class Broken:
        def execute(self):
            raise RuntimeError("boom")
    svc = ReminderService(Broken, scheduler_factory=FakeScheduler)
    svc._job()
    assert svc.last_result is None


def test_intervalo_invalido():
    with pytest.raises(ValueError):
        ReminderService(CountingDispatcher, interval_minutes=0)


# ---------- e-mail ----------

class FakeSMTP:
    sent = []
    fail = False

    def __init__(self, host, port, timeout=None):
        self.host, self.port = host, port
    def __enter__(self):
        if FakeSMTP.fail:
            raise smtplib.SMTPConnectError(421, "indisponível")
        return self
    def __exit__(self, *exc):
        return False
    def starttls(self, context=None):
        pass
    def login(self, user, password):
        pass
    def sendmail(self, sender, recipients, msg):
        FakeSMTP.sent.append((sender, recipients, msg))


def test_email_notifier_envia_multipart():
    FakeSMTP.sent, FakeSMTP.fail = [], False
    cfg = EmailConfig(smtp_host="smtp.local", from_address="alertas@fazenda.ph")
    EmailNotifier(cfg, smtp_factory=FakeSMTP).send("ana@fazenda.ph", "Lembrete", "Linha 1\nLinha 2")
    sender, recipients, msg = FakeSMTP.sent[0]
    assert sender == "alertas@fazenda.ph"
    assert recipients == ["ana@fazenda.ph"]
    assert "multipart/alternative" in msg


def test_email_notifier_falha_vira_transient():
    FakeSMTP.fail = True
    cfg = EmailConfig(smtp_host="smtp.local")
    with pytest.raises(TransientIOError):
        EmailNotifier(cfg, smtp_factory=FakeSMTP).send("ana@fazenda.ph", "Lembrete", "corpo")
    FakeSMTP.fail = False


def test_sem_smtp_configurado_usa_notificador_de_log():
    notifier = build_notifier({"smtp_host": ""})
    assert isinstance(notifier, LoggingNotifier)
    notifier.send("ana@fazenda.ph", "s", "b")
    assert notifier.sent == [("ana@fazenda.ph", "s", "b")]
    assert isinstance(build_notifier({"smtp_host": "smtp.local"}), EmailNotifier)
