"""
Watcher Module Entry Point

Allows execution via: python -m apps.watcher

Delegates to the scheduler for all execution modes (continuous and RUN_ONCE).
"""

import asyncio

from apps.watcher.scheduler import main

if __name__ == "__main__":
    asyncio.run(main())
