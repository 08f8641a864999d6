#!/usr/bin/env python3
"""Operate the execution engine from the command line: browse plans, walk a flow, execute, watch."""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from nebula_console.browser import ExecutionMonitor, PlanBrowser
from nebula_console.client import Notifier, PlanClient, RealtimeChannel
from nebula_console.core import ConfigError, ConsoleError, NetworkError, load_console_config
from nebula_console.core.contracts import ExecutionPlanStatus
from nebula_console.schema import StepRef


def _trunc(s: str, max_len: int = 100) -> str:
    s = str(s)
    return (s[:max_len] + "…") if len(s) > max_len else s


def _print_status(status: ExecutionPlanStatus) -> None:
    line = f"[{status.plan_id}] {status.status} {status.completed_steps}/{status.total_steps} steps ({status.progress:.0%})"
    if status.current_step:
        line += f" current={status.current_step}"
    if status.error:
        line += f" error={_trunc(status.error)}"
    print(line, flush=True)


async def cmd_plans(client: PlanClient, args) -> int:
    browser = PlanBrowser(client)
    plans = await browser.refresh()
    if browser.error:
        return 1
    if not plans:
        print("No execution plans.")
    for plan in plans:
        print(f"{plan.plan_id}  {plan.metadata.name}  [{plan.execution_flow.type}, {len(plan.execution_flow.steps)} steps]")
        if plan.metadata.description:
            print(f"    {_trunc(plan.metadata.description)}")
    return 0


async def _open(client: PlanClient, plan_id: str):
    browser = PlanBrowser(client)
    controller = await browser.select(plan_id)
    if controller is None:
        print(browser.error or f"Plan {plan_id} could not be opened", file=sys.stderr)
    return controller


async def cmd_show(client: PlanClient, args) -> int:
    controller = await _open(client, args.plan)
    if controller is None:
        return 1
    if args.step is not None:
        controller.go_to(args.step - 1)
    print(controller.render())
    return 0


async def cmd_run(client: PlanClient, args) -> int:
    controller = await _open(client, args.plan)
    if controller is None:
        return 1
    outcome = await controller.execute_flow()
    print(outcome.message)
    return 0 if outcome.ok else 1


async def cmd_step(client: PlanClient, args) -> int:
    controller = await _open(client, args.plan)
    if controller is None:
        return 1
    ref = StepRef.parse(args.step)
    if args.instruction is not None:
        controller.edit(ref, "instruction", args.instruction)
    if args.step_config is not None and not controller.edit_configuration(ref, args.step_config):
        print(f"--config is not a JSON object: {_trunc(args.step_config)}", file=sys.stderr)
        return 1
    if args.api_url is not None:
        controller.edit(ref, "external_api_url", args.api_url)
    if args.api_key is not None:
        controller.edit(ref, "api_key", args.api_key)
    outcome = await controller.execute_step(ref)
    print(outcome.message)
    return 0 if outcome.ok else 1


async def cmd_status(client: PlanClient, args) -> int:
    if not args.watch:
        _print_status(await client.poll_status(args.plan))
        return 0
    monitor = ExecutionMonitor(client)
    poller = monitor.watch_plan(args.plan, on_status=_print_status)
    try:
        await poller.wait()
    finally:
        await monitor.stop()
    return 0


async def cmd_prompt(client: PlanClient, args) -> int:
    prompt = " ".join(args.text).strip()
    if not prompt:
        print("Usage: python scripts/console_cli.py prompt \"Your request here\"", file=sys.stderr)
        return 1
    print("Prompt:", prompt, flush=True)
    resp = await client.process_prompt(prompt)
    print("Plan ID:", resp.plan_id, flush=True)
    if resp.message:
        print(resp.message, flush=True)
    if resp.result:
        print("Result:", flush=True)
        print(resp.result, flush=True)
    return 0 if resp.success else 1


async def cmd_approve(client: PlanClient, args) -> int:
    resp = await client.submit_approval(args.plan, args.step, approved=not args.reject, feedback=args.feedback)
    print(resp.message or ("Rejected" if args.reject else "Approved"))
    return 0 if resp.success else 1


async def cmd_stop(client: PlanClient, args) -> int:
    resp = await client.stop_execution(args.plan)
    print(resp.message or f"Stop requested for {args.plan}")
    return 0 if resp.success else 1


async def cmd_watch(client: PlanClient, args) -> int:
    channel = RealtimeChannel(client.config.ws_url, plan_id=args.plan, notifier=client.notifier)
    async for update in channel.updates():
        if isinstance(update, ExecutionPlanStatus):
            _print_status(update)
        else:
            print(_trunc(json.dumps(update), 200), flush=True)
    return 0


COMMANDS = {
    "plans": cmd_plans,
    "show": cmd_show,
    "run": cmd_run,
    "step": cmd_step,
    "status": cmd_status,
    "prompt": cmd_prompt,
    "approve": cmd_approve,
    "stop": cmd_stop,
    "watch": cmd_watch,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Operator console for the execution engine.")
    parser.add_argument("--config", help="JSON config file (defaults + NEBULA_* environment overrides otherwise)")
    parser.add_argument("--url", help="Engine API base URL")
    parser.add_argument("--token", help="Bearer token")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every request and response")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("plans", help="List execution plans")

    p = sub.add_parser("show", help="Render a plan's flow")
    p.add_argument("plan")
    p.add_argument("--step", type=int, help="1-based step to expand")

    p = sub.add_parser("run", help="Execute a whole plan")
    p.add_argument("plan")

    p = sub.add_parser("step", help="Execute one step (e.g. S2 or S3.then/S3a)")
    p.add_argument("plan")
    p.add_argument("step")
    p.add_argument("--instruction")
    p.add_argument("--config", dest="step_config", metavar="JSON", help="Step configuration as a JSON object")
    p.add_argument("--api-url")
    p.add_argument("--api-key")

    p = sub.add_parser("status", help="Show execution status")
    p.add_argument("plan")
    p.add_argument("--watch", action="store_true", help="Poll until the execution finishes")

    p = sub.add_parser("prompt", help="Send a natural-language request to the master agent")
    p.add_argument("text", nargs="*")

    p = sub.add_parser("approve", help="Approve or reject a step waiting for approval")
    p.add_argument("plan")
    p.add_argument("step")
    p.add_argument("--reject", action="store_true")
    p.add_argument("--feedback")

    p = sub.add_parser("stop", help="Stop a running execution")
    p.add_argument("plan")

    p = sub.add_parser("watch", help="Follow realtime execution updates")
    p.add_argument("--plan")
    return parser


def main():
    args = build_parser().parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    try:
        config_path = Path(args.config).resolve() if args.config else None
        config = load_console_config(config_path, project_root=ROOT)
    except ConfigError as e:
        print(e, file=sys.stderr)
        sys.exit(1)
    updates = {}
    if args.url:
        updates["api_base_url"] = args.url
    if args.token:
        updates["auth_token"] = args.token
    if updates:
        config = config.model_copy(update=updates)

    notifier = Notifier()
    client = PlanClient(config, notifier=notifier)
    client.session.on_expired(lambda: print("Session expired: the engine rejected the token. Log in again.", file=sys.stderr))
    try:
        code = asyncio.run(COMMANDS[args.command](client, args))
    except NetworkError:
        target = config.ws_url if args.command == "watch" else config.api_base_url
        print(f"Cannot reach engine at {target}. Is it running?", file=sys.stderr)
        sys.exit(1)
    except ConsoleError as e:
        print(e, file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        code = 130
    for n in notifier.drain():
        if n.type in ("warning", "error"):
            print(f"[{n.type}] {n.message}", file=sys.stderr)
    sys.exit(code)


if __name__ == "__main__":
    main()
