"""
Whitelist / honeypot blacklist loaded from deployment data.

The scoring engine never hardcodes token ids; it receives a TrustLists
instance built at startup from a JSON file:

    {"trusted": ["<token id>", ...], "honeypots": ["<token id>", ...]}

When no file is configured the lists bundled with the package
(default_trust_lists.json) are used.
"""
import json
import logging
from pathlib import Path
from typing import FrozenSet, Iterable, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from cardano_token_api.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_TRUST_LISTS_PATH = Path(__file__).with_name("default_trust_lists.json")


class TrustLists(BaseModel):
    """Immutable sets of explicitly trusted and known honeypot token ids."""
    model_config = ConfigDict(frozen=True)

    trusted: FrozenSet[str] = frozenset()
    honeypots: FrozenSet[str] = frozenset()

    @classmethod
    def of(cls, trusted: Iterable[str] = (), honeypots: Iterable[str] = ()) -> "TrustLists":
        return cls(trusted=frozenset(trusted), honeypots=frozenset(honeypots))

    def is_trusted(self, token_id: str) -> bool:
        return token_id in self.trusted

    def is_honeypot(self, token_id: str) -> bool:
        return token_id in self.honeypots


def load_trust_lists(path: Optional[str]) -> TrustLists:
    """
    Load trust lists from a JSON file.
    An unset path loads the bundled defaults; a missing or malformed file is
    a configuration error.
    """
    file_path = Path(path) if path else DEFAULT_TRUST_LISTS_PATH
    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
        lists = TrustLists.of(
            trusted=data.get("trusted", []),
            honeypots=data.get("honeypots", []),
        )
    except FileNotFoundError as e:
        raise ConfigurationError(f"Trust lists file not found: {file_path}") from e
    except (json.JSONDecodeError, AttributeError, ValidationError) as e:
        raise ConfigurationError(f"Malformed trust lists file {file_path}: {e}") from e

    logger.info(
        "Loaded trust lists from %s (%d trusted, %d honeypots)",
        file_path, len(lists.trusted), len(lists.honeypots)
    )
    return lists
