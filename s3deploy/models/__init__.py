from s3deploy.models.artifact import (
    ArchiveFormat,
    ArtifactDescriptor,
    DeploymentState,
    DownloadOutcome,
    FetchPolicy,
    PointerConfig,
    Stage,
    normalize_build_dir,
    output_path_for,
    parse_ext,
    to_json,
)

__all__ = [
    "ArchiveFormat",
    "ArtifactDescriptor",
    "DeploymentState",
    "DownloadOutcome",
    "FetchPolicy",
    "PointerConfig",
    "Stage",
    "normalize_build_dir",
    "output_path_for",
    "parse_ext",
    "to_json",
]
