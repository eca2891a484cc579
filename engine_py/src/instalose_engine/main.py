"""FastAPI main application for the Insta-Lose game backend"""

import logging
import os

from .rules import create_rules
from .service import GameService
from .ws.server import create_app

# Configure logging
logging.basicConfig(level=os.getenv("LOG_LEVEL", "info").upper())
logger = logging.getLogger(__name__)


def rules_from_env():
    """Rule overrides from INSTALOSE_* environment variables."""
    overrides = {}
    for env_name, field_name in (
        ("INSTALOSE_MAX_PLAYERS", "max_players"),
        ("INSTALOSE_ACTION_LOG_LIMIT", "action_log_limit"),
        ("INSTALOSE_SUBSCRIBER_TTL", "subscriber_ttl"),
    ):
        value = os.getenv(env_name)
        if value:
            overrides[field_name] = int(value)
    return create_rules(**overrides)


service = GameService(rules=rules_from_env())
app = create_app(service)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
