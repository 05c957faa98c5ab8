from core.logger import get_logger
from core.queue.tasks import task
from core.storage import FileStorageManager

logger = get_logger(__name__)

DELETE_PLACE_IMAGE_TASK = "delete_place_image"


@task(DELETE_PLACE_IMAGE_TASK)
async def delete_place_image_task(image_path: str) -> bool:
    provider = FileStorageManager.get_instance().provider
    try:
        provider.delete_object(path=image_path)
    except Exception:
        # Cleanup is best-effort; the log line is its only error channel.
        logger.exception("Could not delete place image %s", image_path)
        return False
    logger.info("Deleted place image %s", image_path)
    return True
