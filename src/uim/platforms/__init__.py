"""Platform plugins available to the build."""

from uim.platforms.alexa import AlexaPlugin
from uim.platforms.base import PlatformBuildHook, PlatformPlugin
from uim.platforms.google import GooglePlugin

PLATFORMS: dict[str, type[PlatformPlugin]] = {
    AlexaPlugin.id: AlexaPlugin,
    GooglePlugin.id: GooglePlugin,
}

__all__ = ["PLATFORMS", "AlexaPlugin", "GooglePlugin", "PlatformBuildHook", "PlatformPlugin"]
