"""Install task: fetch Bootstrap through Bower and relocate its assets."""

from __future__ import annotations

import logging

from ..core.context import INVALID_PREPROCESSOR, BuildContext
from ..core.errors import ConfigurationError
from ..core.models import Endpoint
from ..preprocessors import PREPROCESSORS
from ..resolver.endpoint import compose

logger = logging.getLogger(__name__)


def pending_endpoints(ctx: BuildContext) -> list[Endpoint]:
    """Endpoints that are missing locally, or all of them when forced."""
    return [
        endpoint
        for endpoint in ctx.resolver.endpoints
        if ctx.force or not ctx.resolver.is_installed(endpoint)
    ]


def install_endpoint(ctx: BuildContext, endpoint: Endpoint) -> Endpoint | None:
    """Install one endpoint unless it is already present.

    Args:
        ctx: Build context
        endpoint: Endpoint to install; its target becomes the resolved version

    Returns:
        The endpoint when it was installed, None when it was skipped
    """
    if ctx.resolver.is_installed(endpoint) and not ctx.force:
        logger.debug(f"{ctx.resolver.endpoint_path(endpoint)} already installed")
        return None

    logger.info(f'Installing "{compose(endpoint, include_name=False)}"')
    meta = ctx.resolver.install(endpoint)

    name = meta.get("name") or endpoint.name
    version = meta.get("version") or endpoint.target
    ctx.config.set("package", name)
    ctx.config.set("version", version)

    endpoint.target = version
    endpoint.canonical_dir = ctx.root / ctx.resolver.components_path(endpoint)
    return endpoint


def run_install(ctx: BuildContext) -> list[Endpoint]:
    """Install the preprocessor backend and the configured Bower endpoints.

    Args:
        ctx: Build context

    Returns:
        Endpoints that were newly installed
    """
    preprocessor = ctx.get_preprocessor()
    if preprocessor.name not in PREPROCESSORS:
        raise ConfigurationError(INVALID_PREPROCESSOR)

    preprocessor.install(force=ctx.force)

    ctx.resolver.remove_components()

    installed: list[Endpoint] = []
    for endpoint in pending_endpoints(ctx):
        result = install_endpoint(ctx, endpoint)
        if result is None:
            continue
        installed.append(preprocessor.post_install(result, ctx.resolver))

    ctx.resolver.remove_components()

    if installed:
        summary = ", ".join(compose(e, include_name=False) for e in installed)
        logger.info(f"Successfully installed: {summary}")

    return installed
