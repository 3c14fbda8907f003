"""
Hierarquia de erros do motor de alimentação.

Todas as exceções herdam de `AquafeedError`, permitindo captura ampla nos
pontos de entrada (CLI, rota HTTP) e captura específica nos casos de uso.

    AquafeedError
    ├── ValidationError    entrada inválida (usuário ou documento do banco); nunca re-tentada
    ├── NotFoundError      agenda/usuário inexistente; tratado como resultado vazio
    ├── ThrottledError     banco sem recurso (lock/busy); interrompe a varredura atual
    └── TransientIOError   falha de rede/envio; o candidato fica para a próxima varredura
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class AquafeedError(Exception):
    """Erro base. `detail` carrega contexto para log estruturado."""

    def __init__(self, message: str = "", *, detail: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


class ValidationError(AquafeedError, ValueError):
    """Dado inválido. Também é `ValueError` para manter compatibilidade com validações de entidades."""


class NotFoundError(AquafeedError):
    """Entidade requisitada não existe."""


class ThrottledError(AquafeedError):
    """Recurso do armazenamento esgotado (ex.: sqlite 'database is locked')."""


class TransientIOError(AquafeedError):
    """Falha transitória de I/O externo (envio de notificação, rede)."""
