# configurações globais
# valores podem ser sobrescritos por variáveis de ambiente (arquivo .env na raiz)
import os

from dotenv import load_dotenv

load_dotenv()

# fuso horário fixo dos viveiros (todas as grades de horário são locais)
TIMEZONE = os.getenv("AQUAFEED_TIMEZONE", "Asia/Manila")

# janelas de tempo (minutos) usadas pelo motor de alimentação
REMINDER_WINDOW_MINUTES = 60     # lembrete só para horários que vencem na próxima hora
EARLY_LOG_WINDOW_MINUTES = 60    # registro manual antecipado aceito com confirmação
MISSED_NEAR_MINUTES = 90         # log a ±90 min de um horário "cobre" esse horário

# grade padrão quando a frequência diária muda
DEFAULT_FIRST_FEEDING = "07:00"
DEFAULT_LAST_FEEDING = "17:00"

# tabela de taxa de arraçoamento (% do peso vivo/dia) por faixa de peso médio (g)
# (limite superior exclusivo, taxa); a última faixa vale para tudo acima
FEEDING_RATE_TABLE = (
    (2.0, 20.0),
    (15.0, 10.0),
    (100.0, 5.0),
)
FEEDING_RATE_TOP = 2.75

# disparador de lembretes
DISPATCH_INTERVAL_MINUTES = int(os.getenv("AQUAFEED_DISPATCH_INTERVAL_MINUTES", "30"))
DISPATCH_MAX_RUN_SECONDS = float(os.getenv("AQUAFEED_DISPATCH_MAX_RUN_SECONDS", "0"))  # 0 = sem limite

# e-mail (SMTP)
EMAIL_SETTINGS = {
    "smtp_host": os.getenv("AQUAFEED_SMTP_HOST", ""),
    "smtp_port": int(os.getenv("AQUAFEED_SMTP_PORT", "587")),
    "smtp_username": os.getenv("AQUAFEED_SMTP_USERNAME"),
    "smtp_password": os.getenv("AQUAFEED_SMTP_PASSWORD"),
    "smtp_use_tls": os.getenv("AQUAFEED_SMTP_TLS", "1") not in ("0", "false", "False"),
    "from_address": os.getenv("AQUAFEED_EMAIL_FROM"),
}

APP_URL = os.getenv("AQUAFEED_APP_URL", "http://localhost:8501")
