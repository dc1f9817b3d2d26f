from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol, Sequence, Tuple, Union

import httpx

from .. import __version__
from ..errors import ConfigError, ConfirmationRequired, RegistrationError
from .descriptors import CommandDescriptor

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)

# Platform error: bulk overwrite would remove the app's Entry Point command
ENTRY_POINT_ERROR = 50240


# -----------------------------
# Scopes / targets
# -----------------------------

@dataclass(frozen=True)
class GlobalScope:
    def __str__(self) -> str:
        return "global"


@dataclass(frozen=True)
class GuildScope:
    guild_id: str

    def __str__(self) -> str:
        return f"guild {self.guild_id}"


Scope = Union[GlobalScope, GuildScope]
GLOBAL = GlobalScope()


@dataclass(frozen=True)
class DeploymentTarget:
    """
    Either the global scope or a non-empty set of guilds, never both.
    Build with DeploymentTarget.global_() or DeploymentTarget.guilds(ids).
    """

    is_global: bool = False
    guild_ids: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.is_global and self.guild_ids:
            raise ValueError("a deployment target is either global or guild-scoped, not both")
        if not self.is_global and not self.guild_ids:
            raise ConfigError("No guild IDs specified! Use --guild=GUILD_ID or set GUILD_IDS in .env")

    @classmethod
    def global_(cls) -> "DeploymentTarget":
        return cls(is_global=True)

    @classmethod
    def guilds(cls, guild_ids: Sequence[str]) -> "DeploymentTarget":
        ids: List[str] = []
        for gid in guild_ids:
            gid = str(gid).strip()
            if gid and gid not in ids:
                ids.append(gid)
        return cls(is_global=False, guild_ids=tuple(ids))

    def scopes(self) -> List[Scope]:
        if self.is_global:
            return [GLOBAL]
        return [GuildScope(gid) for gid in self.guild_ids]

    def __str__(self) -> str:
        if self.is_global:
            return "global"
        return "guilds " + ", ".join(self.guild_ids)


def resolve_target(use_global: bool, guild_args: Optional[Sequence[str]], settings: "Settings") -> DeploymentTarget:
    """
    CLI rule:
      --global            -> global
      --guild=<id> ...    -> those guilds
      otherwise           -> GUILD_IDS / GUILD_ID from settings
      nothing configured  -> ConfigError (there is no sensible default)
    """
    if use_global:
        if guild_args:
            raise ConfigError("--global and --guild cannot be combined.")
        return DeploymentTarget.global_()
    if guild_args:
        return DeploymentTarget.guilds(guild_args)
    return DeploymentTarget.guilds(settings.guild_ids)


# -----------------------------
# Registration API
# -----------------------------

class RegistrationApi(Protocol):
    async def replace_all(self, scope: Scope, payload: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        ...

    async def fetch_all(self, scope: Scope) -> List[Dict[str, Any]]:
        ...


class DiscordRegistrationApi:
    """
    Application command endpoints over httpx.

    PUT replaces the whole command set of a scope (bulk overwrite);
    GET lists what is currently registered.
    """

    def __init__(self, client: httpx.AsyncClient, application_id: str) -> None:
        self._client = client
        self._application_id = application_id

    @classmethod
    def from_settings(cls, settings: "Settings") -> "DiscordRegistrationApi":
        client = httpx.AsyncClient(
            base_url=settings.discord_api_base,
            timeout=float(settings.http_timeout_s),
            headers={
                "Authorization": f"Bot {settings.discord_token}",
                "User-Agent": f"DiscordBot (arcade-bot, {__version__})",
            },
        )
        return cls(client, settings.client_id)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "DiscordRegistrationApi":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _path(self, scope: Scope) -> str:
        if isinstance(scope, GuildScope):
            return f"/applications/{self._application_id}/guilds/{scope.guild_id}/commands"
        return f"/applications/{self._application_id}/commands"

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        try:
            resp = await self._client.request(method, path, json=json)
        except httpx.HTTPError as exc:
            raise RegistrationError(f"{method} {path} failed: {exc}") from exc

        if resp.status_code >= 400:
            message = resp.text
            code: Optional[int] = None
            try:
                body = resp.json()
                if isinstance(body, dict):
                    code = body.get("code")
                    message = body.get("message") or message
            except ValueError:
                pass
            raise RegistrationError(
                f"{method} {path} -> HTTP {resp.status_code}: {message}",
                status_code=resp.status_code,
                error_code=code,
            )

        return resp.json()

    async def replace_all(self, scope: Scope, payload: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return list(await self._request("PUT", self._path(scope), json=payload))

    async def fetch_all(self, scope: Scope) -> List[Dict[str, Any]]:
        return list(await self._request("GET", self._path(scope)))


# -----------------------------
# Reports
# -----------------------------

@dataclass
class ScopeOutcome:
    scope: Scope
    ok: bool
    applied: List[str] = field(default_factory=list)
    previous: List[str] = field(default_factory=list)
    mutated: bool = False
    error: Optional[str] = None


@dataclass
class SyncReport:
    action: str
    outcomes: List[ScopeOutcome] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.outcomes) and all(o.ok for o in self.outcomes)

    @property
    def failed(self) -> List[ScopeOutcome]:
        return [o for o in self.outcomes if not o.ok]

    def summary(self) -> str:
        parts = []
        for o in self.outcomes:
            if o.ok:
                parts.append(f"{o.scope}=ok({len(o.applied) if o.mutated else len(o.previous)})")
            else:
                parts.append(f"{o.scope}=failed({o.error})")
        return f"{self.action}: " + ", ".join(parts)


def _names(commands: Sequence[Dict[str, Any]]) -> List[str]:
    return [str(c.get("name", "?")) for c in commands]


def _log_registration_error(scope: Scope, exc: RegistrationError) -> None:
    if exc.error_code == ENTRY_POINT_ERROR:
        logger.error("Entry Point command error for %s. You may need to:", scope)
        logger.error("1. Disable Activities in the Discord Developer Portal temporarily")
        logger.error("2. Or include the Entry Point command in the catalog")
        logger.error("3. Or register guild commands for development (--guild / GUILD_IDS)")
    logger.error("Failed to update commands for %s: %s", scope, exc)


# -----------------------------
# Engine
# -----------------------------

class SyncEngine:
    """
    Declares the command catalog to the registration API.

    Every call is a full replace: after a successful sync the remote scope
    holds exactly the catalog. Guild scopes are independent; one failing
    does not stop the others. No automatic retry.
    """

    def __init__(self, api: RegistrationApi) -> None:
        self._api = api

    @staticmethod
    def build_payload(catalog: Sequence[CommandDescriptor]) -> List[Dict[str, Any]]:
        seen = set()
        dupes = []
        for d in catalog:
            if d.name in seen:
                dupes.append(d.name)
            seen.add(d.name)
        if dupes:
            raise ValueError(f"duplicate command names in catalog: {', '.join(sorted(set(dupes)))}")
        return [d.to_payload() for d in catalog]

    async def _replace(self, scope: Scope, payload: List[Dict[str, Any]]) -> ScopeOutcome:
        logger.info("Registering %s command(s) for %s", len(payload), scope)
        try:
            applied = await self._api.replace_all(scope, payload)
        except RegistrationError as exc:
            _log_registration_error(scope, exc)
            return ScopeOutcome(scope=scope, ok=False, error=str(exc))
        except Exception as exc:
            logger.exception("Unexpected error updating commands for %s", scope)
            return ScopeOutcome(scope=scope, ok=False, error=f"{type(exc).__name__}: {exc}")

        names = _names(applied)
        if len(applied) != len(payload):
            msg = f"platform applied {len(applied)} of {len(payload)} commands"
            logger.error("Registration mismatch for %s: %s", scope, msg)
            return ScopeOutcome(scope=scope, ok=False, applied=names, mutated=True, error=msg)

        logger.info("Successfully registered %s command(s) for %s", len(applied), scope)
        return ScopeOutcome(scope=scope, ok=True, applied=names, mutated=True)

    async def sync(self, catalog: Sequence[CommandDescriptor], target: DeploymentTarget) -> SyncReport:
        payload = self.build_payload(catalog)
        if target.is_global:
            logger.warning("Note: global command updates can take up to 1 hour to propagate")
        outcomes = await asyncio.gather(*(self._replace(scope, payload) for scope in target.scopes()))
        report = SyncReport(action="sync", outcomes=list(outcomes))
        log = logger.info if report.ok else logger.error
        log("%s", report.summary())
        return report

    async def _clear_scope(self, scope: Scope, dry_run: bool) -> ScopeOutcome:
        try:
            current = await self._api.fetch_all(scope)
            names = _names(current)
            logger.info("Found %s command(s) in %s", len(current), scope)

            if not current:
                logger.info("No commands to clear in %s", scope)
                return ScopeOutcome(scope=scope, ok=True)

            if dry_run:
                logger.info("Would clear the following commands in %s:", scope)
                for cmd in current:
                    logger.info("  - /%s: %s", cmd.get("name"), cmd.get("description", ""))
                return ScopeOutcome(scope=scope, ok=True, previous=names)

            logger.info("Clearing all commands for %s...", scope)
            remaining = await self._api.replace_all(scope, [])
            if remaining:
                msg = f"platform kept {len(remaining)} command(s): {', '.join(_names(remaining))}"
                logger.error("Clear incomplete for %s: %s", scope, msg)
                return ScopeOutcome(scope=scope, ok=False, previous=names, mutated=True, error=msg)
            logger.info("Successfully cleared all commands for %s", scope)
            return ScopeOutcome(scope=scope, ok=True, previous=names, mutated=True)
        except RegistrationError as exc:
            _log_registration_error(scope, exc)
            return ScopeOutcome(scope=scope, ok=False, error=str(exc))
        except Exception as exc:
            logger.exception("Unexpected error clearing commands for %s", scope)
            return ScopeOutcome(scope=scope, ok=False, error=f"{type(exc).__name__}: {exc}")

    async def clear(self, target: DeploymentTarget, *, dry_run: bool = False, confirmed: bool = False) -> SyncReport:
        """
        Empty the command set of a target.

        dry_run only fetches and reports. Clearing global commands requires
        confirmed=True; without it nothing is called and ConfirmationRequired is raised.
        """
        if dry_run:
            logger.info("DRY RUN MODE - No commands will be deleted")
        elif target.is_global and not confirmed:
            logger.warning("This will delete ALL global commands!")
            logger.warning("Add --yes to confirm deletion")
            raise ConfirmationRequired("Refusing to clear global commands without confirmation (--yes).")

        outcomes = await asyncio.gather(*(self._clear_scope(scope, dry_run) for scope in target.scopes()))
        report = SyncReport(action="clear (dry run)" if dry_run else "clear", outcomes=list(outcomes))
        log = logger.info if report.ok else logger.error
        log("%s", report.summary())
        return report


__all__ = [
    "GLOBAL",
    "DeploymentTarget",
    "DiscordRegistrationApi",
    "GlobalScope",
    "GuildScope",
    "RegistrationApi",
    "Scope",
    "ScopeOutcome",
    "SyncEngine",
    "SyncReport",
    "resolve_target",
]
