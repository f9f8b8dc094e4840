from s3deploy.config import DownloaderConfig
from s3deploy.downloader import S3Downloader
from s3deploy.errors import DeployError
from s3deploy.models import FetchPolicy, output_path_for, to_json
from s3deploy.services.publisher import read_deployment_state
from dataclasses import replace
import argparse
import json
import logging
import shlex
import sys


# run pip install -e .
# then: s3deploy download --bucket my-config --key production.json
def _ok(body: dict) -> int:
    print(json.dumps(body, indent=2))
    return 0


def _err(msg: str, **extra) -> int:
    print(json.dumps({"error": msg, **extra}, indent=2))
    return 1


def _config_from_args(args) -> DownloaderConfig:
    config = DownloaderConfig.from_env()

    install_command = None
    if args.no_install:
        install_command = []
    elif args.install_command:
        install_command = shlex.split(args.install_command)

    config = config.with_overrides(
        bucket=args.bucket,
        key=args.key,
        build_dir=args.build_dir,
        current_path=args.current_path,
        work_dir=args.work_dir,
        install_command=install_command,
        archive_root=args.archive_root,
        command_timeout=args.timeout,
        fetch_policy=FetchPolicy.ALWAYS_REFRESH if args.force else None,
    )
    if args.no_symlink:
        config.current_path = None
    if args.no_lock:
        config.lock = False

    storage = {
        "profile": args.profile,
        "region": args.region,
        "endpoint_url": args.endpoint_url,
        "connect_timeout": args.timeout,
        "read_timeout": args.timeout,
    }
    config.storage = replace(config.storage, **{k: v for k, v in storage.items() if v is not None})
    return config


def download(args) -> int:
    """
    fetch the current release from S3, extract it and make it active
    """
    try:
        config = _config_from_args(args)
    except DeployError as e:
        return _err(str(e))

    outcome = S3Downloader(config).run()
    print(to_json(outcome, pretty=True))
    return 0 if outcome.ok else 1


def show_output_path(args) -> int:
    try:
        return _ok({"key": args.archive_key,
                    "output_path": output_path_for(args.archive_key, args.build_dir or "")})
    except DeployError as e:
        return _err(str(e))


def show_status(args) -> int:
    state = read_deployment_state(args.current_path, args.work_dir)
    if state.output_path is None:
        return _err(f"no active release linked at {args.current_path}")
    return _ok({"current": args.current_path,
                "target": state.current_target,
                "output_path": state.output_path})


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='s3deploy',
        description='Pull the current app release from S3 and activate it'
    )
    parser.add_argument(
        '--verbose',
        '-v',
        action='store_true',
        help='Log debug output'
    )

    # since we're having different functions, use subparsers for each one
    subparsers = parser.add_subparsers(
        dest='command',
        help='Available commands'
    )

    dl_parser = subparsers.add_parser(
        'download',
        help='Download, extract and publish the release named by the pointer object'
    )
    dl_parser.add_argument('--bucket', help='Bucket holding the pointer object (env: S3DEPLOY_BUCKET)')
    dl_parser.add_argument('--key', help='Key of the pointer object (env: S3DEPLOY_KEY)')
    dl_parser.add_argument('--build-dir', help='Directory prefix the release is extracted under')
    dl_parser.add_argument('--current-path', help='Stable link name (default: current)')
    dl_parser.add_argument(
        '--no-symlink',
        action='store_true',
        help='Do not maintain a stable link; the printed path is the active release'
    )
    dl_parser.add_argument('--work-dir', help='Directory releases are downloaded into (default: .)')
    dl_parser.add_argument(
        '--force',
        action='store_true',
        help='Re-download even if the release directory already exists'
    )
    dl_parser.add_argument('--install-command', help='Dependency install command (default: npm install)')
    dl_parser.add_argument('--no-install', action='store_true', help='Skip the dependency install step')
    dl_parser.add_argument('--archive-root', help='Directory tar archives unpack into (default: deploy-dist)')
    dl_parser.add_argument('--no-lock', action='store_true', help='Do not take the work dir lock')
    dl_parser.add_argument('--profile', help='AWS profile name')
    dl_parser.add_argument('--region', help='AWS region')
    dl_parser.add_argument('--endpoint-url', help='S3 endpoint override, e.g. for LocalStack')
    dl_parser.add_argument('--timeout', type=float, help='Seconds allowed per network read or command')
    dl_parser.set_defaults(func=download)

    path_parser = subparsers.add_parser(
        'output-path',
        help='Print the directory an archive key would be extracted to'
    )
    path_parser.add_argument('archive_key')
    path_parser.add_argument('--build-dir', help='Directory prefix')
    path_parser.set_defaults(func=show_output_path)

    status_parser = subparsers.add_parser(
        'status',
        help='Show which release the stable link points at'
    )
    status_parser.add_argument('--current-path', default='current')
    status_parser.add_argument('--work-dir', default='.')
    status_parser.set_defaults(func=show_status)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    # execute the passed function
    sys.exit(args.func(args))


if __name__ == '__main__':
    main()
