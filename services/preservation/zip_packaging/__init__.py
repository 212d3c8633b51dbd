"""Split-zip packaging of Moab versions into local transfer parts."""

from services.preservation.zip_packaging.archiver import (
    SubprocessZipArchiver,
    ZipArchiver,
    ZipInfo,
)
from services.preservation.zip_packaging.config import (
    SERVICE_COMPONENT_ID,
    ReplicationSettings,
    resolve_replication_settings,
    split_size_to_bytes,
)
from services.preservation.zip_packaging.druid_version_zip import (
    DruidVersionZip,
    DruidVersionZipPart,
)
from services.preservation.zip_packaging.errors import (
    MoabVersionNotFound,
    UnreadableFile,
    ZipmakerFailure,
    ZipPackagingError,
)
from services.preservation.zip_packaging.moab_version_files import MoabVersionFiles
from services.preservation.zip_packaging.pathfinder import (
    ZIP_SUFFIX,
    ZipPartPathfinder,
    expected_part_suffixes,
    part_sort_key,
    part_suffix,
)

__all__ = [
    "SERVICE_COMPONENT_ID",
    "ZIP_SUFFIX",
    "DruidVersionZip",
    "DruidVersionZipPart",
    "MoabVersionFiles",
    "MoabVersionNotFound",
    "ReplicationSettings",
    "SubprocessZipArchiver",
    "UnreadableFile",
    "ZipArchiver",
    "ZipInfo",
    "ZipPackagingError",
    "ZipPartPathfinder",
    "ZipmakerFailure",
    "expected_part_suffixes",
    "part_sort_key",
    "part_suffix",
    "resolve_replication_settings",
    "split_size_to_bytes",
]
