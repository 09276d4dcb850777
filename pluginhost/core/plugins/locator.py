from __future__ import annotations

"""
Package locator (no-import scanning).

WHY THIS FILE EXISTS:
Discovery must find candidate plugin packs on disk without importing any plugin
code. The locator only reads directory listings and package.json text; every
problem becomes a `FoundError` result instead of an exception. Listings and
manifest reads run in worker threads so scans of several paths overlap.
"""

import asyncio
import json
import os
from typing import AsyncIterator, List

from pydantic import ValidationError

from pluginhost.core.errors import InvalidDirectoryError, InvalidPackError
from pluginhost.core.plugins.models import FindResult, FoundError, FoundPackageJson, PackageJson, PackageManifest
from pluginhost.core.plugins.streams import merge

MANIFEST_NAME = "package.json"


def _first_validation_message(e: ValidationError) -> str:
    errs = e.errors()
    if not errs:
        return str(e)
    first = errs[0]
    loc = ".".join(str(x) for x in first.get("loc") or ()) or "package.json"
    return f"{loc}: {first.get('msg')}"


def read_package_json(path: str) -> PackageJson:
    if not os.path.isdir(path):
        raise InvalidPackError(path, "must be a directory")
    manifest_path = os.path.join(path, MANIFEST_NAME)
    if not os.path.isfile(manifest_path):
        raise InvalidPackError(path, "must have a package.json file")
    try:
        with open(manifest_path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidPackError(path, f"has an invalid package.json: {e}") from e
    if not isinstance(raw, dict):
        raise InvalidPackError(path, "has an invalid package.json: manifest is not an object")
    try:
        PackageManifest.model_validate(raw)
    except ValidationError as e:
        raise InvalidPackError(path, f"has an invalid package.json: {_first_validation_message(e)}") from e
    return PackageJson(directory_path=path, contents=raw)


def list_child_directories(path: str) -> List[str]:
    if not os.path.isabs(path):
        raise ValueError(f"Plugin scan directory must be an absolute path: {path}")
    out: List[str] = []
    for name in sorted(os.listdir(path)):
        if name.startswith(".") or name.startswith("_"):
            continue
        child = os.path.join(path, name)
        if os.path.isdir(child):
            out.append(child)
    return out


async def package_json_at_path(path: str) -> AsyncIterator[FindResult]:
    try:
        package_json = await asyncio.to_thread(read_package_json, str(path))
    except Exception as e:  # noqa: BLE001
        yield FoundError(e)
        return
    yield FoundPackageJson(package_json)


async def package_jsons_in_directory(path: str) -> AsyncIterator[FindResult]:
    try:
        children = await asyncio.to_thread(list_child_directories, str(path))
    except Exception as e:  # noqa: BLE001
        yield FoundError(InvalidDirectoryError(e, str(path)))
        return
    async for result in merge(*(package_json_at_path(child) for child in children)):
        yield result


class FilesystemPackageLocator:
    """Default locator; any object exposing the same two methods can replace it."""

    def package_json_at_path(self, path: str) -> AsyncIterator[FindResult]:
        return package_json_at_path(path)

    def package_jsons_in_directory(self, path: str) -> AsyncIterator[FindResult]:
        return package_jsons_in_directory(path)
