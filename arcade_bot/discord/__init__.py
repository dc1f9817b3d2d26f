"""
Discord integration package.

Design goals:
- DescriptorRegistry builds the command/event catalogs from explicit module lists
- SyncEngine declares the command catalog to the platform (full replace)
- ArcadeBot wires the catalogs onto the gateway through the EventBus
"""

from .bot import ArcadeBot, run_bot
from .descriptors import CommandDescriptor, EventDescriptor
from .eventbus import EventBus, SubscriptionHandle
from .registry import DescriptorRegistry
from .sync import DeploymentTarget, DiscordRegistrationApi, SyncEngine, SyncReport, resolve_target

__all__ = [
    "ArcadeBot",
    "run_bot",
    "CommandDescriptor",
    "EventDescriptor",
    "EventBus",
    "SubscriptionHandle",
    "DescriptorRegistry",
    "DeploymentTarget",
    "DiscordRegistrationApi",
    "SyncEngine",
    "SyncReport",
    "resolve_target",
]
