"""
Account Purge

Collects every asset owned by an account that is being deleted and hands
them to the deletion queue, grouped by kind.

Covers the user's profile images, the coach profile (if the user is a
coach), every program the user owns with its lessons, and every attachment
the user sent in messages.
"""

from typing import TYPE_CHECKING

from assetgc.configs import get_logger
from assetgc.configs.constants import ACCOUNT_MESSAGE_BATCH_SIZE
from assetgc.extract import extract_all
from assetgc.models import ResourceKind, StorageReference
from assetgc.storage import DocumentStore

if TYPE_CHECKING:
    from assetgc.cleanup.queue import DeletionQueue

logger = get_logger("cleanup.account")


def _merge(groups: dict[ResourceKind, set[str]], refs: dict[str, StorageReference]) -> None:
    for ref in refs.values():
        groups.setdefault(ref.kind, set()).add(ref.id)


def collect_account_assets(documents: DocumentStore, user_id: str) -> dict[ResourceKind, set[str]]:
    """
    Gather the storage ids owned by an account.

    Args:
        documents: Application document store
        user_id: Id of the user being deleted

    Returns:
        Dict of kind -> ids (empty if the user does not exist)
    """
    user = documents.get("user", user_id)
    if user is None:
        logger.warning(f"Account purge: user not found: {user_id}")
        return {}

    groups: dict[ResourceKind, set[str]] = {}
    _merge(groups, extract_all("user", user))

    for coach in documents.find("coach", user=user_id):
        _merge(groups, extract_all("coach", coach))

    # Program.coach holds the owning user's id, not the coach document's
    programs = documents.find("program", coach=user_id)
    if programs:
        logger.debug(f"Account purge: {user_id} owns {len(programs)} programs")
    for program in programs:
        _merge(groups, extract_all("program", program))
        for lesson in documents.find("lesson", program=program["_id"]):
            _merge(groups, extract_all("lesson", lesson))

    message_count = 0
    for batch in documents.iter_batches(
        "message",
        batch_size=ACCOUNT_MESSAGE_BATCH_SIZE,
        only_with_refs=True,
        senderId=user_id,
    ):
        message_count += len(batch)
        for message in batch:
            _merge(groups, extract_all("message", message))

    total = sum(len(ids) for ids in groups.values())
    logger.info(f"Account purge: {total} assets found for {user_id} ({message_count} messages with attachments)")
    return groups


def purge_account_assets(documents: DocumentStore, queue: "DeletionQueue", user_id: str) -> dict[str, int]:
    """
    Queue every asset owned by an account for deletion.

    Returns:
        Dict of kind -> number of ids submitted
    """
    submitted: dict[str, int] = {}
    for kind, ids in collect_account_assets(documents, user_id).items():
        if not ids:
            continue
        if queue.submit(sorted(ids), kind):
            submitted[kind.value] = len(ids)
    return submitted
