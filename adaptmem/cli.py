import argparse
from datetime import timedelta

from dotenv import load_dotenv

from adaptmem.config import AdaptMemConfig
from adaptmem.llm.client import LLMClient
from adaptmem.logging_config import setup_logging
from adaptmem.memory.models import MemoryRecord, MemoryType
from adaptmem.memory.store import MemoryStore
from adaptmem.processor import MemoryAwareProcessor
from adaptmem.retrieval.context import build_recall_context
from adaptmem.retrieval.retriever import MemoryRetriever
from adaptmem.settings import build_config
from adaptmem.storage import build_storage
from adaptmem.utils import utcnow


def _close_storage(storage) -> None:
    close = getattr(storage, "close", None)
    if close is not None:
        close()


def _format_record(record: MemoryRecord) -> str:
    project = record.context.project or "-"
    return (
        f"{record.id} | {record.type.value} | importance={record.importance} | "
        f"project={project} | {record.content}"
    )


def _add_context_args(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument("--project", help="Project the message refers to")
    cmd.add_argument("--topic", help="Topic words for candidate selection")
    cmd.add_argument("--intent", help="Override detected intent")
    cmd.add_argument("--urgency", help="Override detected urgency (low, medium, high)")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Adaptive contextual memory CLI")
    parser.add_argument("--config", help="Path to YAML config file")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    parser.add_argument("--json-logs", action="store_true", help="Emit structured JSON logs")
    sub = parser.add_subparsers(dest="command", required=True)

    remember_cmd = sub.add_parser("remember", help="Store a memory")
    remember_cmd.add_argument("text", help="Memory content")
    remember_cmd.add_argument("--type", default="fact", choices=[t.value for t in MemoryType])
    remember_cmd.add_argument("--project", help="Project label")
    remember_cmd.add_argument("--topic", help="Topic words")
    remember_cmd.add_argument("--source", default="user", choices=["user", "ai", "system"])
    remember_cmd.add_argument("--confidence", type=float, default=0.8)
    remember_cmd.add_argument("--expires-in-days", type=float, help="Expire the memory after N days")

    recall_cmd = sub.add_parser("recall", help="Recall memories relevant to a message")
    recall_cmd.add_argument("text", help="Message text")
    _add_context_args(recall_cmd)

    prompt_cmd = sub.add_parser("prompt", help="Print the memory-augmented prompt for a message")
    prompt_cmd.add_argument("text", help="Message text")
    _add_context_args(prompt_cmd)

    ask_cmd = sub.add_parser("ask", help="Answer a message with the LLM and remember the turn")
    ask_cmd.add_argument("text", help="Message text")
    _add_context_args(ask_cmd)

    forget_cmd = sub.add_parser("forget", help="Delete a memory by id")
    forget_cmd.add_argument("memory_id", help="Memory id")

    sub.add_parser("clear-expired", help="Delete memories past their expiry")
    sub.add_parser("stats", help="Show memory statistics")

    list_cmd = sub.add_parser("list", help="List or search memories")
    list_cmd.add_argument("--query", default="", help="Substring to match in content, tags or category")
    list_cmd.add_argument("--type", choices=[t.value for t in MemoryType])
    list_cmd.add_argument("--category", help="Category filter")

    args = parser.parse_args(argv)
    load_dotenv()
    setup_logging(args.log_level, structured=args.json_logs)
    config = build_config(args.config)
    storage = build_storage(config.storage)
    try:
        _run_command(args, config, MemoryStore(storage=storage))
    finally:
        _close_storage(storage)


def _run_command(args: argparse.Namespace, config: AdaptMemConfig, store: MemoryStore) -> None:
    if args.command == "remember":
        metadata = {"source": args.source, "confidence": args.confidence}
        if args.expires_in_days is not None:
            metadata["expires_at"] = utcnow() + timedelta(days=args.expires_in_days)
        memory_id = store.store(
            args.text,
            args.type,
            {"project": args.project, "topic": args.topic},
            metadata,
        )
        print(memory_id)
        return

    if args.command == "recall":
        retriever = MemoryRetriever(store, config.recall)
        context = build_recall_context(
            args.text,
            project=args.project,
            topic=args.topic,
            intent=args.intent,
            urgency=args.urgency,
        )
        result = retriever.recall(context)
        for record in result.memories:
            print(_format_record(record))
        print(f"reasoning: {result.reasoning}")
        print(f"confidence: {result.confidence:.2f}")
        for suggestion in result.suggestions:
            print(f"suggestion: {suggestion}")
        return

    if args.command == "prompt":
        processor = MemoryAwareProcessor(store, config=config.recall)
        processed = processor.process_message(
            args.text,
            project=args.project,
            topic=args.topic,
            intent=args.intent,
            urgency=args.urgency,
        )
        print(processed.enhanced_prompt)
        return

    if args.command == "ask":
        processor = MemoryAwareProcessor(store, llm=LLMClient(config.llm), config=config.recall)
        print(
            processor.respond(
                args.text,
                project=args.project,
                topic=args.topic,
                intent=args.intent,
                urgency=args.urgency,
            )
        )
        return

    if args.command == "forget":
        if store.delete(args.memory_id):
            print(f"Deleted {args.memory_id}")
        else:
            print(f"No memory with id {args.memory_id}")
        return

    if args.command == "clear-expired":
        print(f"Cleared {store.clear_expired()} expired memories")
        return

    if args.command == "stats":
        stats = store.stats()
        print(f"total: {stats.total}")
        print(f"avg importance: {stats.avg_importance:.2f}")
        for memory_type, count in sorted(stats.count_by_type.items()):
            print(f"type {memory_type}: {count}")
        for category, count in sorted(stats.count_by_category.items()):
            print(f"category {category}: {count}")
        return

    if args.command == "list":
        for record in store.search(args.query, type=args.type, category=args.category):
            print(_format_record(record))


if __name__ == "__main__":
    main()
