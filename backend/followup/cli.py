"""
Command line client.

Signs in with a token, resolves the session (role and profile) and prints
only what the resolved identity is authorized to see.

Run with: followup --token <jwt> dashboard | busca-ativa | analytics
          followup init-db
"""

import argparse
import asyncio
import os
import sys
from typing import Optional

from followup.auth import TokenAuthClient
from followup.config import clinic_today, get_settings
from followup.database import async_session, engine, Base, run_in_session
from followup.exceptions import NotAuthenticatedError, PanelForbiddenError
from followup.logging_config import configure_logging
from followup.panels import Panel, ensure_panel, role_greeting, sorted_panel_names
from followup.services.analytics_service import analytics_service, EFFECTIVENESS_WINDOW_DAYS
from followup.services.dashboard_service import dashboard_service
from followup.services.identity_service import StoreProfileDirectory
from followup.services.overdue_service import overdue_service
from followup.services.session_service import SessionResolver, SessionSnapshot, SessionState
import followup.models  # noqa: F401


async def init_db():
    print("Creating database tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("All tables created successfully.")


async def open_session(token: str, session_factory=async_session) -> tuple[SessionResolver, SessionSnapshot]:
    """Sign in and wait until role and profile resolution has finished."""
    auth = TokenAuthClient()
    auth.sign_in_with_token(token)
    state = SessionState()
    resolver = SessionResolver(state, auth, StoreProfileDirectory(session_factory))
    await resolver.start()
    snapshot = await state.wait_until_loaded()
    return resolver, snapshot


def _fmt(value) -> str:
    return "-" if value in (None, "") else str(value)


async def show_dashboard(snapshot: SessionSnapshot, session_factory=async_session):
    panels = snapshot.panels
    full_name = snapshot.profile.full_name if snapshot.profile else None
    print(role_greeting(snapshot.role, full_name) or "Boas-vindas")
    if snapshot.role is None:
        print("No role assigned yet. Ask an administrator to assign one.")

    stats = await dashboard_service.get_stats(session_factory, panels, clinic_today())
    if Panel.POPULATION_TOTALS in panels:
        print(f"  Total de Pacientes:   {stats.total_patients}")
        print(f"  Consultas Agendadas:  {stats.scheduled_appointments}")
    if Panel.OVERDUE_COUNT in panels:
        print(f"  Pacientes em Atraso:  {stats.overdue_patients}")
    print(f"Panels: {', '.join(sorted_panel_names(panels)) or 'none'}")


async def show_busca_ativa(snapshot: SessionSnapshot, session_factory=async_session):
    ensure_panel(snapshot.panels, Panel.OVERDUE_LIST)
    today = clinic_today()
    entries = await run_in_session(session_factory, overdue_service.list_overdue, today)
    print(f"Busca Ativa ({today.isoformat()}): {len(entries)} paciente(s) em atraso")
    for e in entries:
        print(
            f"  {e.days_overdue:>4}d  {_fmt(e.severity.value if e.severity else None):<8}  "
            f"{e.full_name:<30}  CNS {_fmt(e.cns):<16}  Tel {_fmt(e.phone):<15}  "
            f"{_fmt(e.territory):<12}  retorno {e.return_deadline_date.strftime('%d/%m/%Y')}  "
            f"{_fmt(e.last_diagnosis)}"
        )


async def show_analytics(snapshot: SessionSnapshot, window_days: int, session_factory=async_session):
    ensure_panel(snapshot.panels, Panel.DIRECTOR_ANALYTICS)
    summary = await analytics_service.director_analytics(
        session_factory, clinic_today(), window_days=window_days
    )
    print("Distribuição por Prioridade")
    for bucket in summary.priority_distribution:
        print(f"  {bucket.name:<20} {bucket.value}")
    print("Níveis de Atraso")
    for bucket in summary.delay_distribution:
        print(f"  {bucket.name:<20} {bucket.value}")
    print(f"Eficácia das Ações ({summary.window_days} dias)")
    for item in summary.effectiveness:
        print(f"  {item.name:<20} {item.value}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="followup", description="Clinical follow-up tracker client")
    parser.add_argument("--token", default=os.getenv("FOLLOWUP_TOKEN"), help="Session token (or FOLLOWUP_TOKEN)")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("init-db", help="Create database tables")
    sub.add_parser("dashboard", help="Role dashboard")
    sub.add_parser("busca-ativa", help="Overdue patients, most overdue first")
    analytics = sub.add_parser("analytics", help="Director analytics")
    analytics.add_argument("--window-days", type=int, default=EFFECTIVENESS_WINDOW_DAYS)
    return parser


async def run(args: argparse.Namespace) -> int:
    if args.command == "init-db":
        await init_db()
        return 0

    if not args.token:
        print("A token is required (--token or FOLLOWUP_TOKEN).", file=sys.stderr)
        return 2

    resolver = None
    try:
        resolver, snapshot = await open_session(args.token)
        if args.command == "dashboard":
            await show_dashboard(snapshot)
        elif args.command == "busca-ativa":
            await show_busca_ativa(snapshot)
        elif args.command == "analytics":
            await show_analytics(snapshot, args.window_days)
        return 0
    except NotAuthenticatedError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except PanelForbiddenError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 3
    finally:
        if resolver is not None:
            await resolver.close()
        await engine.dispose()


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level, settings.json_logs)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
