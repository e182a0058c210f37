from matroska_subtitles.ebml.tags import EbmlTag, EbmlTagId
from matroska_subtitles.subtitles.models import AttachedFile


def extract_attached_file(tag: EbmlTag) -> AttachedFile:
    """Read an AttachedFile element. Missing children are left as None."""
    return AttachedFile(
        filename=tag.child_data(EbmlTagId.FILE_NAME),
        mimetype=tag.child_data(EbmlTagId.FILE_MIME_TYPE),
        data=tag.child_data(EbmlTagId.FILE_DATA),
        description=tag.child_data(EbmlTagId.FILE_DESCRIPTION),
    )
