from mobide.services.idle_reaper.reaper import IdleReaper

__all__ = ["IdleReaper"]
