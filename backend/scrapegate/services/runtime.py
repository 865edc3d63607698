"""Browser runtime resolution: which Chromium binary to launch and how.

In production-like deployments the bundled Playwright browser is often
missing or lives somewhere unusual, so the resolver walks an ordered chain of
strategies and takes the first executable that exists:

    1. explicit override path     (BROWSER_EXECUTABLE_PATH)
    2. browser cache directory    (BROWSER_CACHE_DIR, newest version first)
    3. well-known system paths    (CHROME_PATH first, then distro defaults)

If nothing is found, or outside production, ``executable_path`` stays None
and Playwright uses its bundled Chromium.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Protocol

from scrapegate.config import settings
from scrapegate.services.proxy import get_proxy

logger = logging.getLogger(__name__)

# Required for running inside containers and other constrained sandboxes
BASELINE_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-software-rasterizer",
    "--no-first-run",
    "--no-default-browser-check",
    "--disable-extensions",
    "--disable-background-networking",
    "--disable-sync",
]

DEFAULT_CACHE_DIR = Path.home() / ".cache" / "ms-playwright"

# Binary locations relative to one version directory of the cache
CACHE_BINARY_CANDIDATES = (
    "chrome-linux/chrome",
    "chrome-linux64/chrome",
    "chrome-linux64/google-chrome",
)

SYSTEM_CHROME_PATHS = (
    "/usr/bin/google-chrome-stable",
    "/usr/bin/google-chrome",
    "/usr/bin/chromium",
    "/usr/bin/chromium-browser",
    "/snap/bin/chromium",
)


@dataclass
class LaunchConfiguration:
    headless: bool = True
    args: list[str] = field(default_factory=list)
    executable_path: str | None = None

    def launch_kwargs(self) -> dict:
        """Keyword arguments for ``playwright.chromium.launch``."""
        kwargs = {"headless": self.headless, "args": list(self.args)}
        if self.executable_path:
            kwargs["executable_path"] = self.executable_path
        return kwargs


@dataclass
class DeploymentContext:
    production: bool = False
    executable_path: str = ""
    cache_dir: str = ""
    chrome_path: str = ""

    @classmethod
    def from_settings(cls) -> "DeploymentContext":
        return cls(
            production=settings.is_production,
            executable_path=settings.BROWSER_EXECUTABLE_PATH,
            cache_dir=settings.BROWSER_CACHE_DIR,
            chrome_path=settings.CHROME_PATH,
        )


# ---------------------------------------------------------------------------
# Filesystem access (swappable in tests)
# ---------------------------------------------------------------------------


class FileSystem(Protocol):
    def exists(self, path: str) -> bool: ...

    def list_dirs(self, path: str) -> list[str]: ...


class LocalFileSystem:
    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def list_dirs(self, path: str) -> list[str]:
        """Names of the subdirectories of ``path``; empty if unreadable."""
        try:
            with os.scandir(path) as it:
                return [entry.name for entry in it if entry.is_dir()]
        except OSError:
            return []


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


class ExecutableStrategy:
    name = "base"

    def find(self, context: DeploymentContext, fs: FileSystem) -> str | None:
        raise NotImplementedError


class OverridePathStrategy(ExecutableStrategy):
    name = "override"

    def find(self, context: DeploymentContext, fs: FileSystem) -> str | None:
        path = context.executable_path
        if path and fs.exists(path):
            return path
        if path:
            logger.warning(f"Configured browser executable not found: {path}")
        return None


class CacheDirectoryStrategy(ExecutableStrategy):
    name = "cache_dir"

    def __init__(self, candidates: tuple[str, ...] = CACHE_BINARY_CANDIDATES):
        self.candidates = candidates

    def find(self, context: DeploymentContext, fs: FileSystem) -> str | None:
        cache_dir = context.cache_dir or str(DEFAULT_CACHE_DIR)
        # Newest version directory first (e.g. chromium-1140 before chromium-1105)
        for version in sorted(fs.list_dirs(cache_dir), reverse=True):
            for candidate in self.candidates:
                path = os.path.join(cache_dir, version, candidate)
                if fs.exists(path):
                    return path
        return None


class SystemPathStrategy(ExecutableStrategy):
    name = "system"

    def __init__(self, paths: tuple[str, ...] = SYSTEM_CHROME_PATHS):
        self.paths = paths

    def find(self, context: DeploymentContext, fs: FileSystem) -> str | None:
        candidates = [context.chrome_path] if context.chrome_path else []
        candidates.extend(self.paths)
        for path in candidates:
            if fs.exists(path):
                return path
        return None


DEFAULT_STRATEGIES: tuple[ExecutableStrategy, ...] = (
    OverridePathStrategy(),
    CacheDirectoryStrategy(),
    SystemPathStrategy(),
)


class RuntimeResolver:
    def __init__(
        self,
        strategies: tuple[ExecutableStrategy, ...] | None = None,
        fs: FileSystem | None = None,
        proxy_provider: Callable[[], str | None] = get_proxy,
    ):
        self.strategies = strategies if strategies is not None else DEFAULT_STRATEGIES
        self.fs = fs or LocalFileSystem()
        self.proxy_provider = proxy_provider

    def find_executable(self, context: DeploymentContext) -> str | None:
        for strategy in self.strategies:
            path = strategy.find(context, self.fs)
            if path:
                logger.info(f"Browser executable resolved via {strategy.name}: {path}")
                return path
        logger.info("No browser executable found, using bundled Chromium")
        return None

    def resolve(self, context: DeploymentContext | None = None) -> LaunchConfiguration:
        context = context or DeploymentContext.from_settings()
        config = LaunchConfiguration(headless=True, args=list(BASELINE_ARGS))

        if context.production:
            config.executable_path = self.find_executable(context)

        proxy = self.proxy_provider()
        if proxy:
            config.args.append(f"--proxy-server={proxy}")

        return config
