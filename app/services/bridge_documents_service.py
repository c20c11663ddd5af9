from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from app.services.config import BridgeSetupConfig
from app.services.setup_errors import MissingMatrixUserError
from app.services.token_service import generate_token


logger = logging.getLogger(__name__)


BRIDGE_ID = "telegram"
BOT_LOCALPART = "telegrambot"
APPSERVICE_PORT = 29317
APPSERVICE_URL = f"http://matrix-bridges-telegram_mautrix-telegram_1:{APPSERVICE_PORT}"


def normalize_user_id(user: Optional[str], domain: str) -> str:
    """Return a fully-qualified `@user:domain` Matrix id.

    Anything already carrying a `:` is treated as qualified and left alone.
    """

    if user is None or not user.strip():
        raise MissingMatrixUserError("Matrix user ID required")

    user = user.strip()
    if ":" in user:
        return user
    return f"@{user.lstrip('@')}:{domain}"


@dataclass(frozen=True)
class BridgeDocuments:
    """In-memory bridge config + registration manifest sharing one token pair."""

    user_id: str
    bot_user_id: str
    config: dict[str, Any]
    registration: dict[str, Any]

    @property
    def as_token(self) -> str:
        return self.registration["as_token"]

    @property
    def hs_token(self) -> str:
        return self.registration["hs_token"]


class BridgeDocumentsService:
    """Pure construction of the two bridge documents (no I/O)."""

    def __init__(
        self,
        config: BridgeSetupConfig,
        *,
        token_factory: Callable[[], str] = generate_token,
    ) -> None:
        self._config = config
        self._token_factory = token_factory

    def build(self, matrix_user: Optional[str]) -> BridgeDocuments:
        domain = self._config.synapse_domain
        user_id = normalize_user_id(matrix_user, domain)

        as_token, hs_token = self._token_pair()

        documents = BridgeDocuments(
            user_id=user_id,
            bot_user_id=f"@{BOT_LOCALPART}:{domain}",
            config=self._bridge_config(user_id=user_id, as_token=as_token, hs_token=hs_token),
            registration=self._registration(as_token=as_token, hs_token=hs_token),
        )
        logger.info("Built bridge documents for %s (domain=%s)", user_id, domain)
        return documents

    def _token_pair(self) -> tuple[str, str]:
        as_token = self._token_factory()
        hs_token = self._token_factory()
        while hs_token == as_token:
            hs_token = self._token_factory()
        return as_token, hs_token

    def _bridge_config(self, *, user_id: str, as_token: str, hs_token: str) -> dict[str, Any]:
        domain = self._config.synapse_domain
        return {
            "homeserver": {
                "address": self._config.synapse_url,
                "domain": domain,
                "verify_ssl": False,
                "http_retry_count": 4,
                "status_endpoint": None,
                "message_send_checkpoint_endpoint": None,
                "async_media": False,
            },
            "appservice": {
                "address": APPSERVICE_URL,
                "hostname": "0.0.0.0",
                "port": APPSERVICE_PORT,
                "max_body_size": 1,
                "database": "sqlite:////data/mautrix-telegram.db",
                "id": BRIDGE_ID,
                "bot_username": BOT_LOCALPART,
                "bot_displayname": "Telegram bridge bot",
                "bot_avatar": "mxc://maunium.net/tJCRmUyJDsgRNgqhOgoiHWbX",
                "as_token": as_token,
                "hs_token": hs_token,
            },
            "bridge": self._bridge_section(user_id=user_id, domain=domain),
            "telegram": self._telegram_section(),
            "logging": self._logging_section(),
        }

    @staticmethod
    def _bridge_section(*, user_id: str, domain: str) -> dict[str, Any]:
        return {
            "username_template": "telegram_{userid}",
            "alias_template": "telegram_{groupid}",
            "displayname_template": "{displayname} (Telegram)",
            "displayname_preference": ["full_name", "username", "phone_number"],
            "displayname_max_length": 100,
            "allow_avatar_remove": True,
            "allow_contact_info": True,
            "sync_channel_members": True,
            "startup_sync": True,
            "sync_create_limit": 15,
            "sync_direct_chats": False,
            "telegram_link_preview": True,
            "invite_link_resolve": False,
            "encryption": {
                "allow": False,
                "default": False,
                "database": "default",
                "verification_levels": {
                    "receive": "unverified",
                    "send": "unverified",
                    "share": "cross-signed-tofu",
                },
                "require": False,
            },
            "private_chat_portal_meta": False,
            "parallel_file_transfer": False,
            "exit_on_update_error": False,
            "bridge_matrix_leave": True,
            "delivery_receipts": False,
            "delivery_error_reports": False,
            "federate_rooms": True,
            "animated_sticker": {"target": "webp", "convert_from_webm": False},
            "animated_emoji": {"target": "disable"},
            "double_puppet_server_map": {},
            "double_puppet_allow_discovery": False,
            "login_shared_secret_map": {},
            "telegram_avatar_initial_sync": True,
            "telegram_profile_name_initial_sync": True,
            "allow_matrix_login": True,
            "public_portals": False,
            "sync_direct_chat_list": False,
            "relaybot": {"enabled": False},
            "authless_portals": True,
            "message_status_events": False,
            "restricted_rooms": True,
            "send_stickers_without_preview": False,
            "filter": {"mode": "whitelist", "list": []},
            "permissions": {
                user_id: "admin",
                domain: "user",
            },
        }

    @staticmethod
    def _telegram_section() -> dict[str, Any]:
        # api_id/api_hash must be filled in by the operator from my.telegram.org.
        return {
            "api_id": 0,
            "api_hash": "",
            "bot_token": "",
            "catch_up": True,
            "sequential_updates": True,
            "exit_on_update_error": False,
            "device_info": {
                "device_model": "mautrix-telegram",
                "system_version": "auto",
                "app_version": "auto",
            },
            "server": {
                "enabled": False,
                "dc": 2,
                "ip": "149.154.167.50",
                "port": 443,
            },
        }

    @staticmethod
    def _logging_section() -> dict[str, Any]:
        return {
            "version": 1,
            "formatters": {
                "colored": {
                    "()": "mautrix_telegram.util.ColorFormatter",
                    "format": "[%(asctime)s] [%(levelname)s@%(name)s] %(message)s",
                }
            },
            "handlers": {
                "console": {"class": "logging.StreamHandler", "formatter": "colored"},
            },
            "loggers": {
                "mau": {"level": "DEBUG"},
                "telethon": {"level": "INFO"},
                "aiohttp": {"level": "INFO"},
            },
            "root": {"level": "DEBUG", "handlers": ["console"]},
        }

    def _registration(self, *, as_token: str, hs_token: str) -> dict[str, Any]:
        domain = self._config.synapse_domain
        return {
            "id": BRIDGE_ID,
            "as_token": as_token,
            "hs_token": hs_token,
            "namespaces": {
                "users": [
                    {"exclusive": True, "regex": f"@{BRIDGE_ID}_.*:{domain}"},
                    {"exclusive": True, "regex": f"@{BOT_LOCALPART}:{domain}"},
                ],
                "aliases": [
                    {"exclusive": True, "regex": f"#{BRIDGE_ID}_.*:{domain}"},
                ],
            },
            "url": APPSERVICE_URL,
            "sender_localpart": BOT_LOCALPART,
            "rate_limited": False,
        }
