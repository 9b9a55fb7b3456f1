import argparse
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.settings import settings
from database.connectors import create_connector
from database.metadata_loader import load_metadata_file
from database.northwind_metadata import NORTHWIND_METADATA
from state.plan_state import AnalysisRequest
from tools.error_manager import SemanticLayerError
from tools.sql_tools import format_results_for_display


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Show the query plan and SQL generated for a business question"
    )
    parser.add_argument("question", help="Business question, e.g. 'total revenue per customer'")
    parser.add_argument("--metadata", help="YAML/JSON metadata file (defaults to the Northwind sample)")
    parser.add_argument("--group-by", dest="group_by", help="GROUP BY clause passed through verbatim")
    parser.add_argument("--limit", type=int, help="LIMIT for the generated query")
    parser.add_argument("--execute", action="store_true", help="Run the query against the configured database")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=settings.log_level)

    connector = create_connector(settings.backend, settings.database)
    metadata_path = args.metadata or settings.metadata_path
    connector.initialize_metadata(load_metadata_file(metadata_path) if metadata_path else NORTHWIND_METADATA)

    request = AnalysisRequest(business_question=args.question, group_by=args.group_by, limit=args.limit)

    print("=" * 70)
    print(f"❓ {args.question}")
    print("=" * 70)

    plan = connector.metadata.analyze_business_question(args.question)
    for key, value in plan.get_plan_summary().items():
        print(f"  {key:17}: {value}")

    try:
        sql = connector.engine.build_business_query(plan, request)
    except SemanticLayerError as e:
        print(f"\n❌ {e}")
        return 1

    print("\n📝 SQL:\n")
    print(sql)

    if not args.execute:
        return 0

    try:
        connector.connect()
        result = connector.analyze(request)
        print("\n" + format_results_for_display(result))
    except SemanticLayerError as e:
        print(f"\n❌ {e.detail.get_user_message()}\n   {e}")
        return 1
    finally:
        connector.disconnect()
    return 0


if __name__ == "__main__":
    sys.exit(main())
