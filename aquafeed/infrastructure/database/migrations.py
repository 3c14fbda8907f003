# estrutura do banco
import logging
import sqlite3

from config.database import DATABASE_PATH

log = logging.getLogger("aquafeed.infrastructure.migrations")


def migration_001():
    """Cria a tabela 'ponds' (cadastro de viveiros, mantido por outro sistema)."""
    return """
    CREATE TABLE ponds (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        fish_count INTEGER DEFAULT 0,
        feeding_frequency INTEGER DEFAULT 0,
        created_at DATETIME DEFAULT (datetime('now'))
    );
    """


def migration_002():
    """Cria a tabela 'users' com status de aprovação."""
    return """
    CREATE TABLE users (
        id TEXT PRIMARY KEY,
        email TEXT NOT NULL,
        display_name TEXT,
        status TEXT NOT NULL DEFAULT 'pending',
        created_at DATETIME DEFAULT (datetime('now'))
    );
    """


def migration_003():
    """Cria a tabela de vínculo 'user_ponds' (usuário ↔ viveiro)."""
    return """
    CREATE TABLE user_ponds (
        user_id TEXT NOT NULL,
        pond_id TEXT NOT NULL,
        PRIMARY KEY (user_id, pond_id),
        FOREIGN KEY (user_id) REFERENCES users(id),
        FOREIGN KEY (pond_id) REFERENCES ponds(id)
    );
    """


def migration_004():
    """Cria a tabela 'feeding_schedules' (uma grade por viveiro; horários e dias em JSON)."""
    return """
    CREATE TABLE feeding_schedules (
        pond_id TEXT PRIMARY KEY,
        pond_name TEXT NOT NULL,
        times_of_day TEXT NOT NULL,
        times_per_day INTEGER NOT NULL,
        repeat_type TEXT NOT NULL DEFAULT 'daily',
        selected_days TEXT NOT NULL DEFAULT '[]',
        start_date TEXT NOT NULL,
        end_date TEXT,
        active BOOLEAN DEFAULT 1,
        created_by TEXT,
        last_updated_by TEXT,
        created_at TEXT,
        updated_at TEXT
    );
    """


def migration_005():
    """Cria a tabela 'feeding_logs' (append-only; instantes em ISO-8601 UTC)."""
    return """
    CREATE TABLE feeding_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        pond_id TEXT NOT NULL,
        pond_name TEXT,
        fed_at TEXT NOT NULL,
        feed_given_grams REAL NOT NULL,
        user_id TEXT NOT NULL,
        user_email TEXT,
        user_display_name TEXT,
        reason TEXT NOT NULL DEFAULT 'manual',
        auto_logged BOOLEAN DEFAULT 0,
        scheduled_for TEXT,
        created_at TEXT NOT NULL,
        FOREIGN KEY (pond_id) REFERENCES ponds(id)
    );
    """


def migration_006():
    """Cria a tabela 'reminder_markers'; a chave composta garante um lembrete por chave."""
    return """
    CREATE TABLE reminder_markers (
        schedule_id TEXT NOT NULL,
        marker_key TEXT NOT NULL,
        slot_date TEXT NOT NULL,
        time_label TEXT NOT NULL,
        user_id TEXT NOT NULL,
        scheduled_at TEXT NOT NULL,
        pond_id TEXT,
        pond_name TEXT,
        email TEXT,
        created_at TEXT NOT NULL,
        PRIMARY KEY (schedule_id, marker_key)
    );
    """


def migration_007():
    """Cria a tabela 'growth_setups' (peso médio atual por viveiro)."""
    return """
    CREATE TABLE growth_setups (
        pond_id TEXT PRIMARY KEY,
        current_abw REAL,
        updated_at DATETIME DEFAULT (datetime('now')),
        FOREIGN KEY (pond_id) REFERENCES ponds(id)
    );
    """


def migration_008():
    """Cria a tabela 'mortality_logs' (taxa de mortalidade % por registro)."""
    return """
    CREATE TABLE mortality_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        pond_id TEXT NOT NULL,
        mortality_rate REAL,
        recorded_at DATETIME DEFAULT (datetime('now')),
        FOREIGN KEY (pond_id) REFERENCES ponds(id)
    );
    """


def migration_009():
    """Cria índice composto para consultas de registros por (pond_id, fed_at)."""
    return """
    CREATE INDEX idx_feeding_logs_pond_fed_at ON feeding_logs(pond_id, fed_at);
    """


def migration_010():
    """Cria índice para mortalidade por viveiro."""
    return """
    CREATE INDEX idx_mortality_logs_pond ON mortality_logs(pond_id);
    """


AVAILABLE_MIGRATIONS = {
    '001': migration_001,
    '002': migration_002,
    '003': migration_003,
    '004': migration_004,
    '005': migration_005,
    '006': migration_006,
    '007': migration_007,
    '008': migration_008,
    '009': migration_009,
    '010': migration_010,
}


# tabela para controlar migrations executadas
def create_migrations_table(db_path=None):
    """Garante a existência da tabela de controle 'migrations'."""
    with sqlite3.connect(str(db_path or DATABASE_PATH)) as connec:
        connec.execute("""
            CREATE TABLE IF NOT EXISTS migrations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                version TEXT UNIQUE NOT NULL,
                executed_at DATETIME DEFAULT (datetime('now'))
            );
        """)
        connec.commit()


def get_executed_migrations(db_path=None):
    """
    Retorna a lista das migrations já executadas (strings de versão).

    Observação:
        Se a tabela 'migrations' ainda não existir, retorna lista vazia.
    """
    try:
        with sqlite3.connect(str(db_path or DATABASE_PATH)) as connec:
            results = connec.execute("SELECT version FROM migrations ORDER BY version").fetchall()
            return [row[0] for row in results]
    except sqlite3.OperationalError:
        # se ainda nao existir ai retorna a lista zerada
        return []


def run_migrations(db_path=None):
    """
    Executa as migrations pendentes, na ordem declarada em AVAILABLE_MIGRATIONS.

    Pode ser chamada a cada inicialização (CLI, API, painel): versões já
    registradas são ignoradas.
    """
    create_migrations_table(db_path)
    executed = get_executed_migrations(db_path)

    for version, migration_func in AVAILABLE_MIGRATIONS.items():
        if version not in executed:
            log.info("migration_running version=%s", version)
            execute_migration(migration_func, version, db_path)
    log.debug("migrations_done path=%s", db_path or DATABASE_PATH)


def execute_migration(migration_func, version, db_path=None):
    """
    Executa uma migration específica e registra a versão na tabela 'migrations'.

    Args:
        migration_func: função que retorna o SQL (DDL/DML) da migration.
        version: string de versão (ex.: '001', '002').
    """
    try:
        with sqlite3.connect(str(db_path or DATABASE_PATH)) as connec:
            cursor = connec.cursor()
            cursor.execute(migration_func())
            cursor.execute("INSERT INTO migrations (version) VALUES (?)", (version,))
            connec.commit()
    except Exception as e:
        log.error("migration_failed version=%s err=%s", version, e)
        raise


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run_migrations()
    print(f"Migrations executadas: {get_executed_migrations()}")
