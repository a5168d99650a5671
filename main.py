"""
VoltTrack MIS - Main Entry Point

Console runner for the transformer MIS. Opens the configured record store
(seeding the sample records on first run) and offers the dashboard summary,
the records list, AI insights, free-form questions, or the HTTP API server.
"""

import asyncio
import json
import sys
import logging
from datetime import date

from volttrack.compute.service import ComputeService, days_until, display_status
from volttrack.config import config
from volttrack.insights import CollaboratorError, InsightsService
from volttrack.query.filters import RecordFilter, filter_records
from volttrack.reporting.aggregation import build_dashboard
from volttrack.storage import JsonFileStorage
from volttrack.store import RecordStore

# Configure logging
logging.basicConfig(
    level=config.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stdout
)
logger = logging.getLogger(__name__)

EXPIRY_WINDOW_DAYS = 90


class MISRunner:

    def __init__(self):
        self.store = RecordStore.open(
            JsonFileStorage(config.storage.path),
            config.storage.key,
            seed=config.storage.seed_samples
        )
        if self.store.read_only:
            print(f"Warning: stored records in {config.storage.path} could not be read; showing an empty set.")
        self.insights = InsightsService.from_config(config)

    def print_dashboard(self):
        today = date.today()
        dashboard = build_dashboard(self.store.records, today)
        summary = dashboard["summary"]

        print(f"\n{'='*70}")
        print(f"  DASHBOARD - as of {dashboard['as_of']}")
        print(f"{'='*70}")
        print(f"  Total Units:     {summary['total']}")
        print(f"  Commissioned:    {summary['commissioned']}")
        print(f"  Overdue Comm.:   {summary['overdue']}")
        print(f"  Total PBG Value: {summary['total_pbg']:,.2f}")

        for title, key, value_key in [
            ("Status", "status", "value"),
            ("By Rating", "by_rating", "count"),
            ("By State", "by_state", "count"),
            ("Warranty Expiry (Dispatch) by Year", "by_warranty_year", "count"),
            ("Top Customers", "top_customers", "value"),
            ("PBG Due by Month", "monthly_pbg", "value"),
        ]:
            print(f"\n  {title}:")
            for row in dashboard[key]:
                print(f"    {row['name']:<30} {row[value_key]}")

        expiring = []
        for record in self.store.records:
            remaining = days_until(record.warranty_date_dispatch, today)
            if remaining is not None and 0 <= remaining <= EXPIRY_WINDOW_DAYS:
                expiring.append((remaining, record))
        if expiring:
            print(f"\n  Dispatch warranties expiring within {EXPIRY_WINDOW_DAYS} days:")
            for remaining, record in sorted(expiring, key=lambda item: item[0]):
                print(f"    {record.serial_number:<20} {record.customer_name:<25} {remaining} days")
        print("=" * 70 + "\n")

    def print_records(self, search_text: str = "", status: str = "All"):
        today = date.today()
        matched = filter_records(self.store.records, RecordFilter(search_text=search_text, status=status))

        print(f"\n{len(matched)} of {len(self.store)} records")
        print("-" * 70)
        for record in matched:
            print(
                f"  {record.serial_number:<16} {record.customer_name:<22} "
                f"{display_status(record, today).value:<13} "
                f"warranty {record.warranty_date_dispatch or '-'} / {record.warranty_date_comm or '-'}"
            )
        print("-" * 70 + "\n")

    async def run_insights(self):
        try:
            insights = await self.insights.generate_insights(self.store.records)
        except CollaboratorError as e:
            print(f"\n[INSIGHTS ERROR] {e}\n")
            return

        print(f"\n{'='*70}")
        print("  AI INSIGHTS")
        print(f"{'='*70}")
        print(f"\n{insights.summary}\n")
        print("Risks:")
        for risk in insights.risks:
            print(f"  - {risk}")
        print("Opportunities:")
        for opportunity in insights.opportunities:
            print(f"  - {opportunity}")
        print(f"\nTotal value exposure: {insights.keyMetrics.totalValueExposure}")
        print(f"Most active customer: {insights.keyMetrics.mostActiveCustomer}")
        print("=" * 70 + "\n")

    async def ask(self, question: str):
        try:
            answer = await self.insights.ask(question, self.store.records)
        except (CollaboratorError, ValueError) as e:
            print(f"\n[ASSISTANT ERROR] {e}\n")
            return
        print("\n" + "-" * 40)
        print("ASSISTANT:", answer)
        print("-" * 40 + "\n")

    async def interactive_mode(self):
        print("\n" + "=" * 70)
        print("  VOLTTRACK MIS - Interactive Mode")
        print("=" * 70)
        print(f"\nLoaded {len(self.store)} records from {config.storage.path}")
        print("\nCommands:")
        print("  /dashboard        - Show dashboard summary")
        print("  /list [text]      - List records, optionally filtered by search text")
        print("  /insights         - Generate AI insights")
        print("  /derive <json>    - Run a warranty derivation, e.g. /derive {\"dispatchDate\": \"2024-01-15\"}")
        print("  /quit             - Exit")
        print("\nType any other message to ask the AI assistant about the data.")
        print("-" * 70 + "\n")

        compute = ComputeService()

        while True:
            try:
                user_input = input("You: ").strip()
                if not user_input:
                    continue

                if user_input.startswith("/"):
                    cmd, _, arg = user_input.partition(" ")
                    cmd = cmd.lower()

                    if cmd in ("/quit", "/exit"):
                        print("Goodbye!")
                        break
                    elif cmd == "/dashboard":
                        self.print_dashboard()
                    elif cmd == "/list":
                        self.print_records(arg.strip())
                    elif cmd == "/insights":
                        await self.run_insights()
                    elif cmd == "/derive":
                        try:
                            print(compute.run(json.loads(arg or "{}")))
                        except json.JSONDecodeError as e:
                            print(f"Invalid JSON: {e}")
                    else:
                        print("Unknown command. Use /quit, /dashboard, /list, /insights, /derive")
                    continue

                await self.ask(user_input)

            except KeyboardInterrupt:
                print("\n\nGoodbye!")
                break
            except EOFError:
                break


def serve():
    import uvicorn
    from volttrack.servers.api.main import app

    uvicorn.run(app, host=config.server.host, port=config.server.port)


async def main():
    """Main entry point."""
    if len(sys.argv) > 1 and sys.argv[1] == "--help":
        print("Usage:")
        print("  python main.py                   - Interactive mode")
        print("  python main.py --dashboard       - Print dashboard summary")
        print("  python main.py --list [text]     - List records matching text")
        print("  python main.py --insights        - Generate AI insights")
        print("  python main.py --ask <question>  - Ask the AI assistant")
        print("  python main.py --serve           - Run the dashboard API server")
        print("  python main.py --help            - Show this help")
        return

    runner = MISRunner()

    if len(sys.argv) > 1:
        if sys.argv[1] == "--dashboard":
            runner.print_dashboard()
        elif sys.argv[1] == "--list":
            runner.print_records(" ".join(sys.argv[2:]))
        elif sys.argv[1] == "--insights":
            await runner.run_insights()
        elif sys.argv[1] == "--ask":
            await runner.ask(" ".join(sys.argv[2:]))
        else:
            print(f"Unknown argument: {sys.argv[1]}")
            print("Use --help for usage information")
    else:
        await runner.interactive_mode()


if __name__ == "__main__":
    # uvicorn runs its own event loop
    if len(sys.argv) > 1 and sys.argv[1] == "--serve":
        serve()
    else:
        asyncio.run(main())
