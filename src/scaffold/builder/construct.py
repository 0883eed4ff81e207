"""Creating build containers."""

import logging
from typing import Optional

from scaffold.builder.codec import save_builder
from scaffold.builder.mount import remove_links, mount_builder
from scaffold.errors import DuplicateNameError, ImageUnknownError, ScaffoldError
from scaffold.models.builder import Builder, BuilderOptions, ImportOptions, CONTAINER_TYPE
from scaffold.store.base import BaseStore, ContainerInfo, ImageInfo


logger = logging.getLogger(__name__)

BASE_CONTAINER_NAME = "working-container"


def default_container_name(image: str) -> str:
    """Name for a container based on ``image``, e.g. alpine-working-container."""
    if not image:
        return BASE_CONTAINER_NAME
    prefix = image.rsplit("/", 1)[-1]
    prefix = prefix.split("@", 1)[0].split(":", 1)[0]
    return f"{prefix}-{BASE_CONTAINER_NAME}"


async def _resolve_image(store: BaseStore, options: BuilderOptions, name: str) -> ImageInfo:
    """Find the source image, pulling it if the options ask for that."""
    if options.pull_always:
        return await store.pull_image(name, options.registry, options.signature_policy_path)
    try:
        return await store.lookup_image(name)
    except ImageUnknownError:
        if not options.pull_if_missing:
            raise
    logger.info(f"Image {name} not found locally, pulling")
    return await store.pull_image(name, options.registry, options.signature_policy_path)


async def _allocate(
    store: BaseStore,
    requested: str,
    image: str,
    image_id: Optional[str],
) -> ContainerInfo:
    """Create the backing container.

    An explicitly requested name must be free; a generated one gets a
    numeric suffix until it is.
    """
    if requested:
        return await store.create_container(requested, image_id)

    base = default_container_name(image)
    name = base
    conflict = 1
    while True:
        try:
            return await store.create_container(name, image_id)
        except DuplicateNameError:
            name = f"{base}-{conflict}"
            conflict += 1


async def new_builder(store: BaseStore, options: BuilderOptions) -> Builder:
    """Create a new build container, optionally based on an image."""
    image_name = "" if options.from_image == "scratch" else options.from_image

    image: Optional[ImageInfo] = None
    config = manifest = b""
    if image_name:
        image = await _resolve_image(store, options, image_name)
        config = await store.image_config(image.id)
        manifest = await store.image_manifest(image.id)

    container = await _allocate(store, options.container, image_name, image.id if image else None)
    builder = Builder(
        type=CONTAINER_TYPE,
        from_image=image_name,
        config=config,
        manifest=manifest,
        container=container.name,
        container_id=container.id,
    ).attach(store)

    try:
        await save_builder(builder)
        if options.mount:
            await mount_builder(builder, link=options.link)
    except Exception:
        logger.error(f"Failed to set up container {container.name}, removing it")
        await remove_links(builder)
        try:
            await store.delete_container(container.id)
        except ScaffoldError as e:
            logger.error(f"Failed to remove container {container.name}: {e}")
        raise

    logger.info(f"Created build container {builder.container} from {image_name or 'scratch'}")
    return builder


async def import_builder(store: BaseStore, options: ImportOptions) -> Builder:
    """Create build state for a container which already exists in the store."""
    if not options.container:
        raise ScaffoldError("container name must be specified")

    container = await store.get_container(options.container)
    builder = Builder(
        type=CONTAINER_TYPE,
        container=container.name,
        container_id=container.id,
    ).attach(store)
    await save_builder(builder)

    logger.info(f"Imported container {builder.container}")
    return builder
