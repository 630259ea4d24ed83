from cdnproxy.infrastructure.discord.refresh_client import DiscordRefreshClient

__all__ = ["DiscordRefreshClient"]
