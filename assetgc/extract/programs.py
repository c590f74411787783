"""
Program Extractors

Programs nest modules, modules nest lessons, lessons nest files and slide
presentations, and slides nest overlays and resources. Module and program
documents hold lesson/module ids when stored, and full sub-documents when
populated for reconciliation; both shapes are handled.
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

# Slides have carried both field spellings
SLIDE_IMAGE_FIELDS = ("imagePublicId", "imageId")
SLIDE_AUDIO_FIELDS = ("audioPublicId", "audioId")


class LessonExtractor(SchemaExtractor):
    """Lesson files, presentation source, slides and lesson resources."""

    @property
    def name(self) -> str:
        return "lesson"

    @property
    def existence_paths(self) -> tuple[str, ...]:
        return (
            "content.files",
            "content.presentation.slides",
            "content.presentation.originalFilePublicId",
            "resources",
        )

    @property
    def index_fields(self) -> tuple[str, ...]:
        return ("program", "module")

    def collect(self, doc: dict, collector: AssetCollector, prefix: str = "") -> None:
        # Files of a video lesson are always served as video
        forced = ResourceKind.VIDEO if doc.get("contentType") == "video" else None

        content = doc.get("content")
        content_path = join_path(prefix, "content")
        for path, item in iter_objects(get_path(content, "files"), join_path(content_path, "files")):
            collector.add_from(item, "publicId", ResourceKind.AUTO, path, forced=forced)

        presentation = get_path(content, "presentation")
        presentation_path = join_path(content_path, "presentation")
        if isinstance(presentation, dict):
            collector.add(
                presentation.get("originalFilePublicId"),
                ResourceKind.RAW,
                join_path(presentation_path, "originalFilePublicId"),
            )
            slides_path = join_path(presentation_path, "slides")
            for path, slide in iter_objects(presentation.get("slides"), slides_path):
                self._collect_slide(slide, collector, path)

        for path, item in iter_objects(doc.get("resources"), join_path(prefix, "resources")):
            collector.add_from(item, "publicId", ResourceKind.AUTO, path)

    def _collect_slide(self, slide: dict, collector: AssetCollector, path: str) -> None:
        for field in SLIDE_IMAGE_FIELDS:
            collector.add(slide.get(field), ResourceKind.IMAGE, join_path(path, field))
        # Audio is stored under the video resource kind
        for field in SLIDE_AUDIO_FIELDS:
            collector.add(slide.get(field), ResourceKind.VIDEO, join_path(path, field))

        for overlay_path, overlay in iter_objects(slide.get("overlays"), join_path(path, "overlays")):
            collector.add_from(overlay, "publicId", ResourceKind.IMAGE, overlay_path)
        for resource_path, resource in iter_objects(slide.get("resources"), join_path(path, "resources")):
            collector.add_from(resource, "publicId", ResourceKind.AUTO, resource_path)


class ModuleExtractor(SchemaExtractor):
    """Populated lessons of a module."""

    def __init__(self, lessons: LessonExtractor):
        self._lessons = lessons

    @property
    def name(self) -> str:
        return "module"

    @property
    def existence_paths(self) -> tuple[str, ...]:
        return tuple(f"lessons.{path}" for path in self._lessons.existence_paths)

    @property
    def index_fields(self) -> tuple[str, ...]:
        return ("program",)

    def collect(self, doc: dict, collector: AssetCollector, prefix: str = "") -> None:
        # Unpopulated lesson ids are plain strings and yield nothing here
        for path, lesson in iter_objects(doc.get("lessons"), join_path(prefix, "lessons")):
            self._lessons.collect(lesson, collector, path)


class ProgramExtractor(SchemaExtractor):
    """Program images, trailer video, and any populated modules."""

    def __init__(self, modules: ModuleExtractor):
        self._modules = modules

    @property
    def name(self) -> str:
        return "program"

    @property
    def existence_paths(self) -> tuple[str, ...]:
        return ("programImages", "trailerVideo.publicId") + tuple(
            f"modules.{path}" for path in self._modules.existence_paths
        )

    @property
    def index_fields(self) -> tuple[str, ...]:
        return ("coach",)

    def collect(self, doc: dict, collector: AssetCollector, prefix: str = "") -> None:
        for path, image in iter_objects(doc.get("programImages"), join_path(prefix, "programImages")):
            collector.add_from(image, "publicId", ResourceKind.IMAGE, path)

        collector.add_from(
            doc.get("trailerVideo"),
            "publicId",
            ResourceKind.VIDEO,
            join_path(prefix, "trailerVideo"),
            forced=ResourceKind.VIDEO,
        )

        for path, module in iter_objects(doc.get("modules"), join_path(prefix, "modules")):
            self._modules.collect(module, collector, path)


class EnrollmentExtractor(SchemaExtractor):
    """Assignment submission files recorded in enrollment progress."""

    @property
    def name(self) -> str:
        return "enrollment"

    @property
    def existence_paths(self) -> tuple[str, ...]:
        return ("progress.lessonDetails.submission.files",)

    @property
    def index_fields(self) -> tuple[str, ...]:
        return ("user", "program")

    def collect(self, doc: dict, collector: AssetCollector, prefix: str = "") -> None:
        details_path = join_path(prefix, "progress.lessonDetails")
        for path, detail in iter_objects(get_path(doc, "progress.lessonDetails"), details_path):
            files = get_path(detail, "submission.files")
            for file_path, item in iter_objects(files, join_path(path, "submission.files")):
                collector.add_from(item, "publicId", ResourceKind.AUTO, file_path)


lesson_extractor = LessonExtractor()
module_extractor = ModuleExtractor(lesson_extractor)
program_extractor = ProgramExtractor(module_extractor)

register_extractor(program_extractor)
register_extractor(module_extractor)
register_extractor(lesson_extractor)
register_extractor(EnrollmentExtractor())
