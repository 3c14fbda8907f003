# config do banco
import os
from pathlib import Path

# banco
DATABASE_PATH = Path(os.getenv("AQUAFEED_DATABASE_PATH", "data/aquafeed.db"))

# segundos que o sqlite espera por um lock antes de desistir (vira ThrottledError)
DATABASE_TIMEOUT = float(os.getenv("AQUAFEED_DATABASE_TIMEOUT", "5"))


# vai criar um repositorio se nao existir
DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)
