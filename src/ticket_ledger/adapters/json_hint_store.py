"""File-backed storage for the wallet reconnect hint."""

import logging
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from ticket_ledger.domain.wallet import SessionHint
from ticket_ledger.services.wallet_sessions import SessionHintStore

_logger = logging.getLogger(__name__)


@dataclass
class JsonFileHintStore(SessionHintStore):
    """Stores the reconnect hint as a small JSON document."""

    path: Path

    def load(self) -> SessionHint:
        """Return the stored hint; unreadable files fall back to no reconnect."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return SessionHint()
        try:
            return SessionHint.model_validate_json(raw)
        except ValidationError:
            _logger.warning("Ignoring malformed wallet hint at %s", self.path)
            return SessionHint()

    def save(self, hint: SessionHint) -> None:
        """Write the hint, replacing any previous one."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".tmp")
        tmp_path.write_text(hint.model_dump_json(), encoding="utf-8")
        tmp_path.replace(self.path)
