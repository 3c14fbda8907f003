from enum import Enum, auto

class RepeatType(Enum):
    """Recorrência da grade de alimentação."""
    DAILY = "daily"     # todos os dias
    WEEKLY = "weekly"   # apenas nos dias da semana selecionados

class FeedingReason(Enum):
    """Origem de um registro de alimentação."""
    MANUAL = "manual"                    # lançado pelo operador
    MISSED_SCHEDULE = "missed_schedule"  # gerado automaticamente para horário perdido

class GuardState(Enum):
    """Estados do fluxo de registro manual."""
    IDLE = auto()
    VALIDATING = auto()
    BLOCKED = auto()
    PENDING_EARLY_CONFIRM = auto()      # aviso: alimentação antes do horário (pode seguir)
    PENDING_AMOUNT_CONFIRM = auto()     # aviso: quantidade diferente da sugerida (pode seguir)
    PENDING_TOO_EARLY_REJECT = auto()   # bloqueio: cedo demais, sem opção de seguir
    SUBMITTING = auto()
    DONE = auto()

class BlockReason(Enum):
    """Motivo de bloqueio do registro manual."""
    INVALID_INPUT = "invalid input"
    DAILY_LIMIT_REACHED = "daily limit reached"

class DispatchStatus(Enum):
    """Resultado agregado de uma varredura de lembretes."""
    OK = "ok"
    NO_APPROVED_USERS = "no_approved_users"
    THROTTLED = "throttled"
    ERROR = "error"

class UserStatus(Enum):
    """Situação de aprovação do usuário (gerida fora deste módulo)."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    BLOCKED = "blocked"
