"""CLI entry point for the SFTP toolkit."""

import argparse
import logging
import sys
from pathlib import Path

import pandas as pd
import paramiko
import yaml

import sftp_client
from recursive import make_dir_recursive, del_dir_recursive, list_dir_recursive, DEFAULT_INCLUDED_TYPES
from sftp_client import DEFAULT_OPERATION_TIMEOUT
from sftp_errors import ToolkitError
from sftp_types import parse_types
from transfer import download_file, upload_file, DEFAULT_CHUNK_SIZE

log = logging.getLogger(__name__)


def load_config(config_path=None):
    """Load config.yaml and return dict with defaults filled in."""
    if config_path is None:
        config_path = Path(__file__).parent / "config.yaml"
    raw = {}
    if Path(config_path).exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}

    included = raw.get("included_types")
    return {
        "operation_timeout": float(raw.get("operation_timeout", DEFAULT_OPERATION_TIMEOUT)),
        "chunk_size": int(raw.get("chunk_size", DEFAULT_CHUNK_SIZE)),
        "included_types": parse_types(included) if included else DEFAULT_INCLUDED_TYPES,
    }


def cmd_mkdir(sftp, config, args):
    make_dir_recursive(sftp, args.path, operation_timeout=config["operation_timeout"])
    print(f"Created {args.path}")


def cmd_rm(sftp, config, args):
    del_dir_recursive(sftp, args.path, operation_timeout=config["operation_timeout"])
    print(f"Removed {args.path}")


def cmd_ls(sftp, config, args):
    included = parse_types(args.types.split(",")) if args.types else config["included_types"]
    result = list_dir_recursive(
        sftp, args.path,
        operation_timeout=config["operation_timeout"],
        included_types=included,
        result_format="file_info" if args.long else "path",
    )
    if not result:
        print(f"No entries found under {args.path}")
        return
    if not args.long:
        for path in result:
            print(path)
        return

    df = pd.DataFrame([{
        "path": path,
        "type": info.type.value,
        "access": info.access.value,
        "size": info.size,
        "mtime": pd.to_datetime(info.mtime, unit="s") if info.mtime is not None else None,
    } for path, info in result])
    print(df.to_string(index=False))


def cmd_get(sftp, config, args):
    download_file(sftp, args.remote, args.local,
                  chunk_size=config["chunk_size"],
                  operation_timeout=config["operation_timeout"])
    print(f"Downloaded {args.remote} -> {args.local}")


def cmd_put(sftp, config, args):
    upload_file(sftp, args.local, args.remote,
                chunk_size=config["chunk_size"],
                operation_timeout=config["operation_timeout"])
    print(f"Uploaded {args.local} -> {args.remote}")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="sftp_toolkit",
        description="Recursive directory operations and chunked transfers over SFTP",
    )
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument("--env", default=None, help="Path to .env with SFTP credentials")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command")
    sub.required = True

    # mkdir
    p_mkdir = sub.add_parser("mkdir", help="Create a remote directory and its parents")
    p_mkdir.add_argument("path", help="Remote directory path")
    p_mkdir.set_defaults(func=cmd_mkdir)

    # ls
    p_ls = sub.add_parser("ls", help="Recursively list a remote directory")
    p_ls.add_argument("path", nargs="?", default="", help="Remote directory path")
    p_ls.add_argument("--types", default=None,
                      help="Comma-separated entry types to include (regular,directory,symlink,...)")
    p_ls.add_argument("--long", action="store_true", help="Show type, access, size and mtime")
    p_ls.set_defaults(func=cmd_ls)

    # rm
    p_rm = sub.add_parser("rm", help="Recursively delete a remote directory")
    p_rm.add_argument("path", help="Remote directory path")
    p_rm.set_defaults(func=cmd_rm)

    # get
    p_get = sub.add_parser("get", help="Download a file")
    p_get.add_argument("remote", help="Remote file path")
    p_get.add_argument("local", help="Local destination path")
    p_get.set_defaults(func=cmd_get)

    # put
    p_put = sub.add_parser("put", help="Upload a file")
    p_put.add_argument("local", help="Local file path")
    p_put.add_argument("remote", help="Remote destination path")
    p_put.set_defaults(func=cmd_put)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )
    config = load_config(args.config)

    try:
        sftp = sftp_client.connect(args.env)
    except KeyError as e:
        print(f"error: missing connection setting {e.args[0]}", file=sys.stderr)
        return 1
    except (paramiko.SSHException, OSError) as e:
        print(f"error: cannot connect: {e}", file=sys.stderr)
        return 1

    try:
        args.func(sftp, config, args)
    except ToolkitError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    finally:
        sftp_client.close(sftp)
    return 0


if __name__ == "__main__":
    sys.exit(main())
