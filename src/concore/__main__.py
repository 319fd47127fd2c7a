"""Command-line entry point for running PID nodes from a workflow graph."""

from __future__ import annotations

import argparse
import os
import sys
import time
from pathlib import Path

from tqdm import tqdm

from .config import ConcoreConfig
from .engine import reactive_loop, trace_batch
from .errors import ConcoreError
from .graph import NodeConfig, load_graph
from .triggers import FileChangeTrigger

DEFAULT_ERRORS = [5.0, 4.0, 3.0, 2.0, 1.0]


def format_duration(seconds: float) -> str:
    """Format duration in seconds to human-readable string."""
    if seconds < 60:
        return f"{seconds:.2f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = seconds % 60
        return f"{minutes}m {secs:.1f}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes}m"


def print_header(text: str, width: int = 70) -> None:
    """Print a formatted section header."""
    print("\n" + "=" * width)
    print(f"  {text}")
    print("=" * width)


def select_nodes(args: argparse.Namespace, config: ConcoreConfig) -> list[NodeConfig]:
    if args.graph is None:
        return [NodeConfig(id=args.node or "pid", kp=args.kp, ki=args.ki, kd=args.kd)]

    nodes = load_graph(args.graph, config)
    if not nodes:
        raise ValueError(f"Workflow graph {args.graph} declares no nodes.")
    if args.node is not None:
        nodes = [node for node in nodes if node.id == args.node]
        if not nodes:
            raise ValueError(f"Node '{args.node}' not found in workflow graph {args.graph}.")
    return nodes


def run_batch_mode(args: argparse.Namespace, config: ConcoreConfig, nodes: list[NodeConfig]) -> None:
    from .reporting import plot_trajectory, summarize_trajectory

    quiet = args.quiet
    node_iter = tqdm(nodes, desc="Running nodes", disable=quiet or len(nodes) < 2, leave=False)
    for node_config in node_iter:
        node = node_config.build()
        records = trace_batch(node, args.errors, dt=config.dt)
        if quiet:
            print(f"{node.id} {records[-1].output:.6f}" if records else node.id)
            continue

        title = f"Node {node.id}: kp={node.kp}, ki={node.ki}, kd={node.kd}"
        print("\n" + summarize_trajectory(records, title=title))
        if args.plot is not None:
            out_path = args.plot if len(nodes) == 1 else args.plot.with_name(f"{args.plot.stem}_{node.id}{args.plot.suffix}")
            plot_trajectory(records, out_path, title=title)
            print(f"Plot written to: {out_path.resolve()}")


def run_watch_mode(args: argparse.Namespace, config: ConcoreConfig, nodes: list[NodeConfig]) -> None:
    if len(nodes) != 1:
        raise ValueError("Watch mode drives a single node; select one with --node.")
    node = nodes[0].build()
    trigger = FileChangeTrigger(args.watch, interval=args.interval, timeout=args.timeout)
    if not args.quiet:
        print(f"Watching: {args.watch}")
    outputs = reactive_loop(node, trigger, max_steps=args.max_steps, dt=config.dt)
    if args.quiet:
        print(f"{outputs[-1]:.6f}" if outputs else "")
    else:
        print(f"Completed {len(outputs)} steps")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="concore",
        description="Run PID control nodes over a literal error sequence or a watched input file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --kp 2 --ki 0.5 --kd 0.1              # Batch run on the default error sequence
  %(prog)s --graph workflow.graphml --errors 10 8 5 2
  %(prog)s --graph workflow.graphml --node pid --plot trajectory.png
  %(prog)s --kp 2 --watch error.txt --max-steps 20
        """,
    )
    parser.add_argument("--graph", type=Path, default=None, help="GraphML workflow to load nodes from.")
    parser.add_argument("--node", default=None, help="Run only the node with this id.")
    parser.add_argument("--kp", type=float, default=1.0, help="Proportional gain when no graph is given (default: 1.0).")
    parser.add_argument("--ki", type=float, default=0.0, help="Integral gain when no graph is given (default: 0.0).")
    parser.add_argument("--kd", type=float, default=0.0, help="Derivative gain when no graph is given (default: 0.0).")
    parser.add_argument(
        "--errors",
        type=float,
        nargs="+",
        default=DEFAULT_ERRORS,
        help="Error sequence for batch mode (default: 5 4 3 2 1).",
    )
    parser.add_argument("--dt", type=float, default=1.0, help="Time step of every control step (default: 1.0).")
    parser.add_argument("--plot", type=Path, default=None, help="Save a trajectory plot to this path (batch mode).")
    parser.add_argument("--watch", type=Path, default=None, help="Step once per change of this file instead of batch mode.")
    parser.add_argument("--max-steps", type=int, default=100, help="Notifications to process in watch mode (default: 100).")
    parser.add_argument("--interval", type=float, default=0.05, help="Polling interval of watch mode in seconds.")
    parser.add_argument("--timeout", type=float, default=None, help="Give up watching after this many idle seconds.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output.")
    parser.add_argument("-q", "--quiet", action="store_true", help="Print only final outputs.")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    # Set global verbosity level (used by other modules)
    if args.quiet:
        os.environ["CONCORE_VERBOSITY"] = "0"
    elif args.verbose:
        os.environ["CONCORE_VERBOSITY"] = "2"
    else:
        os.environ["CONCORE_VERBOSITY"] = "1"

    start_time = time.time()
    try:
        config = ConcoreConfig(dt=args.dt)
        nodes = select_nodes(args, config)
        if not args.quiet:
            print_header("concore PID run" if args.watch is None else "concore PID watch")
        if args.watch is None:
            run_batch_mode(args, config, nodes)
        else:
            run_watch_mode(args, config, nodes)
        if args.verbose:
            print(f"\nRuntime: {format_duration(time.time() - start_time)}")
    except FileNotFoundError as e:
        print(f"Error: File not found: {e}", file=sys.stderr)
        sys.exit(1)
    except ConcoreError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: Invalid input: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
