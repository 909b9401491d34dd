"""Command-line maintenance for the Weaviate sound catalog."""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Sequence

from .config import Settings
from .core import SoundMatchError
from .core.ranking import format_confidence, format_duration
from .main import build_vector_store, configure_logging
from .sample_sounds import load_sample_sounds
from .services import WeaviateVectorStore


async def setup_catalog(store: WeaviateVectorStore) -> int:
    """Recreate the SoundBite class and load the sample catalog."""

    print("🔗 Testing Weaviate connection...")
    meta = await store.meta()
    print(f"✅ Connected to Weaviate version: {meta.version}")

    if await store.schema_exists():
        print("⚠️  SoundBite schema already exists. Deleting...")
        await store.clear_sound_bites()

    print("📝 Creating SoundBite schema...")
    await store.create_schema()
    print("✅ Schema created successfully")

    sounds = load_sample_sounds()
    print("📊 Adding sample sound data...")
    await store.batch_import(sounds)
    print(f"✅ Added {len(sounds)} sample sounds")

    total = await store.count_objects()
    print(f"📊 Total sounds in database: {total}")
    return total


async def list_catalog(store: WeaviateVectorStore, limit: int) -> int:
    sound_bites = await store.list_sound_bites(limit)
    print(f"\nFound {len(sound_bites)} SoundBite objects:")
    for index, sound in enumerate(sound_bites, start=1):
        print(f"{index}. {sound.title} [{format_duration(sound.duration)}] id={sound.id}")
        print(f"   Description: {sound.description}")
        print(f"   Audio URL: {sound.audio_url}")
        if sound.tags:
            print(f"   Tags: {', '.join(sound.tags)}")
    return len(sound_bites)


async def search_catalog(
    store: WeaviateVectorStore, query: str, limit: int, threshold: float
) -> int:
    results = await store.search_sounds(query, limit, threshold)
    print(f"\nFound {len(results)} matches for {query!r}:")
    for index, sound in enumerate(results, start=1):
        print(
            f"{index}. {sound.title} ({format_confidence(sound.confidence)}) "
            f"[{format_duration(sound.duration)}] id={sound.id}"
        )
    return len(results)


async def delete_entry(store: WeaviateVectorStore, object_id: str) -> bool:
    existing = await store.get_sound_bite(object_id)
    if existing is None:
        print(f"❌ Object {object_id} not found")
        return False
    print(f"Found object: {existing.title}")
    deleted = await store.delete_sound_bite(object_id)
    if deleted:
        remaining = await store.count_objects()
        print(f"✅ Object deleted. Remaining SoundBite objects: {remaining}")
    return deleted


async def show_schema(store: WeaviateVectorStore) -> None:
    schema = await store.get_schema()
    if not schema.classes:
        print("No classes defined")
        return
    for definition in schema.classes:
        count = await store.count_objects(definition.class_name)
        fields = ", ".join(prop.name for prop in definition.properties)
        print(f"{definition.class_name} ({count} objects): {fields}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="soundmatch-admin",
        description="Manage the SoundBite catalog stored in Weaviate",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("setup", help="Recreate the schema and load sample sounds")
    list_cmd = sub.add_parser("list", help="List stored sound bites")
    list_cmd.add_argument("--limit", type=int, default=100)
    search_cmd = sub.add_parser("search", help="Run a text search against the catalog")
    search_cmd.add_argument("query")
    search_cmd.add_argument("--limit", type=int, default=10)
    search_cmd.add_argument("--threshold", type=float, default=0.7)
    delete_cmd = sub.add_parser("delete", help="Delete one sound bite by id")
    delete_cmd.add_argument("object_id")
    sub.add_parser("clear", help="Drop the SoundBite class and all its objects")
    sub.add_parser("schema", help="Show classes with object counts")
    return parser


async def run(args: argparse.Namespace, store: WeaviateVectorStore) -> int:
    try:
        if args.command == "setup":
            await setup_catalog(store)
            print("🎉 Weaviate setup complete!")
        elif args.command == "list":
            await list_catalog(store, args.limit)
        elif args.command == "search":
            await search_catalog(store, args.query, args.limit, args.threshold)
        elif args.command == "delete":
            if not await delete_entry(store, args.object_id):
                return 1
        elif args.command == "clear":
            await store.clear_sound_bites()
            print("✅ SoundBite class deleted")
        elif args.command == "schema":
            await show_schema(store)
    except SoundMatchError as exc:
        print(f"❌ {exc.message}", file=sys.stderr)
        return 1
    finally:
        await store.close()
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    store = build_vector_store(settings)
    return asyncio.run(run(args, store))


if __name__ == "__main__":
    sys.exit(main())
