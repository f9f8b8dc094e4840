from s3deploy.services.archive_extractor import ArchiveExtractor
from s3deploy.services.artifact_fetcher import ArtifactFetcher
from s3deploy.services.config_resolver import ConfigResolver
from s3deploy.services.dependency_installer import DependencyInstaller
from s3deploy.services.publisher import Publisher, read_deployment_state

__all__ = [
    "ArchiveExtractor",
    "ArtifactFetcher",
    "ConfigResolver",
    "DependencyInstaller",
    "Publisher",
    "read_deployment_state",
]
