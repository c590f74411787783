"""
Account Extractors

References held by user and coach profiles.
"""

from assetgc.extract.base import (
    AssetCollector,
    SchemaExtractor,
    get_path,
    iter_objects,
    join_path,
    register_extractor,
)
from assetgc.models import ResourceKind


class UserExtractor(SchemaExtractor):
    """Profile picture and background images."""

    @property
    def name(self) -> str:
        return "user"

    @property
    def existence_paths(self) -> tuple[str, ...]:
        return ("profilePicture.publicId", "backgrounds")

    def collect(self, doc: dict, collector: AssetCollector, prefix: str = "") -> None:
        collector.add_from(
            doc.get("profilePicture"), "publicId", ResourceKind.IMAGE, join_path(prefix, "profilePicture")
        )
        for path, background in iter_objects(doc.get("backgrounds"), join_path(prefix, "backgrounds")):
            collector.add_from(background, "publicId", ResourceKind.IMAGE, path)


class CoachExtractor(SchemaExtractor):
    """Profile picture, video introduction and insurance verification documents."""

    @property
    def name(self) -> str:
        return "coach"

    @property
    def existence_paths(self) -> tuple[str, ...]:
        return (
            "profilePicture.publicId",
            "videoIntroduction.publicId",
            "settings.insuranceRecognition.registries.verificationDocument.publicId",
        )

    @property
    def index_fields(self) -> tuple[str, ...]:
        return ("user",)

    def collect(self, doc: dict, collector: AssetCollector, prefix: str = "") -> None:
        collector.add_from(
            doc.get("profilePicture"), "publicId", ResourceKind.IMAGE, join_path(prefix, "profilePicture")
        )
        # Always a video, whatever kind the upload recorded
        collector.add_from(
            doc.get("videoIntroduction"),
            "publicId",
            ResourceKind.VIDEO,
            join_path(prefix, "videoIntroduction"),
            forced=ResourceKind.VIDEO,
        )

        registries_path = join_path(prefix, "settings.insuranceRecognition.registries")
        registries = get_path(doc, "settings.insuranceRecognition.registries")
        for path, registry in iter_objects(registries, registries_path):
            collector.add_from(
                registry.get("verificationDocument"),
                "publicId",
                ResourceKind.RAW,
                join_path(path, "verificationDocument"),
            )


register_extractor(UserExtractor())
register_extractor(CoachExtractor())
