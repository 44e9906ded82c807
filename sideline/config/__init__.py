from sideline.config.settings import settings, Settings

__all__ = ["settings", "Settings"]
