"""Command line entry point.

Usage:
    gocross [flags] <repository>
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from collections.abc import Sequence

from gocross.errors import GocrossError
from gocross.models import BuildOptions, BuildRequest
from gocross.observability import StdlibLogger
from gocross.orchestrator import start_build_ctx


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gocross", description="Go cross compilation in docker")
    parser.add_argument("repository", nargs="?", default="", help="Root import path or local path to build")
    parser.add_argument("--go", dest="go_version", default="", help="Go release to use for cross compilation")
    parser.add_argument("--goproxy", default="", help="Set a global proxy for Go modules")
    parser.add_argument("--pkg", default="", help="Sub-package to build if not root import")
    parser.add_argument("--remote", default="", help="Version control remote repository to build")
    parser.add_argument("--branch", default="", help="Version control branch to build")
    parser.add_argument("--out", default="", help="Prefix to use for output naming (empty = package name)")
    parser.add_argument("--dest", default="", help="Destination folder to put binaries in (empty = current)")
    parser.add_argument("--deps", default="", help="CGO dependencies (configure/make based archives)")
    parser.add_argument("--depsargs", default="", help="CGO dependency configure arguments")
    parser.add_argument("--deps-cache", default="", help="Directory caching downloaded dependencies")
    parser.add_argument("--targets", default="", help="Comma separated targets to build for")
    parser.add_argument("--docker-repo", default="", help="Use custom docker repo instead of official distribution")
    parser.add_argument("--docker-image", default="", help="Use custom docker image instead of official distribution")

    build = parser.add_argument_group("build flags")
    build.add_argument("-v", dest="verbose", action="store_true", help="Print the names of packages as they are compiled")
    build.add_argument("-x", dest="steps", action="store_true", help="Print the command as executing the builds")
    build.add_argument("--race", action="store_true", help="Enable data race detection (supported only on amd64)")
    build.add_argument("--tags", default="", help="List of build tags to consider satisfied during the build")
    build.add_argument("--ldflags", default="", help="Arguments to pass on each go tool link invocation")
    build.add_argument("--buildmode", default="", help="Indicates which kind of object file to build")
    build.add_argument("--buildvcs", default="", help="Whether to stamp binaries with version control information")
    build.add_argument("--trimpath", action="store_true", help="Remove all file system paths from the resulting executable")
    return parser


def request_from_args(args: argparse.Namespace) -> BuildRequest:
    targets = tuple(target.strip() for target in args.targets.split(",") if target.strip())
    return BuildRequest(
        repository=args.repository,
        go_version=args.go_version,
        go_proxy=args.goproxy,
        src_package=args.pkg,
        src_remote=args.remote,
        src_branch=args.branch,
        out_prefix=args.out,
        out_folder=args.dest,
        cross_deps=args.deps,
        cross_args=args.depsargs,
        deps_cache=args.deps_cache,
        targets=targets,
        docker_repo=args.docker_repo,
        docker_image=args.docker_image,
        build=BuildOptions(
            verbose=args.verbose,
            steps=args.steps,
            race=args.race,
            tags=args.tags,
            ldflags=args.ldflags,
            mode=args.buildmode,
            vcs=args.buildvcs,
            trimpath=args.trimpath,
        ),
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(message)s")

    cancel = threading.Event()
    previous = signal.signal(signal.SIGINT, lambda *_: cancel.set())
    try:
        start_build_ctx(cancel, request_from_args(args), StdlibLogger())
    except GocrossError as exc:
        print(f"gocross: {exc}", file=sys.stderr)
        return 1
    finally:
        signal.signal(signal.SIGINT, previous)
    return 0


if __name__ == "__main__":
    sys.exit(main())
