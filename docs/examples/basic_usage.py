"""
Basic Usage Example for concore

This script demonstrates the fundamental workflow:
1. Load PID nodes from a GraphML workflow
2. Run a controller over an error sequence
3. Seed the simulated clock from an initial literal
4. Tabulate and plot the trajectory
"""

from pathlib import Path

from concore import ChannelStore, load_graph
from concore.engine import trace_batch
from concore.reporting import plot_trajectory, summarize_trajectory

GRAPH_FILE = Path(__file__).with_name("sample_graph.graphml")


def main():
    print("=" * 60)
    print("concore Basic Usage Example")
    print("=" * 60)

    # Step 1: Load graph
    print("\n[1] Loading GraphML workflow...")
    configs = load_graph(GRAPH_FILE)
    print(f"    Loaded {len(configs)} nodes:")
    for config in configs:
        print(f"      - {config.id}: kp={config.kp}, ki={config.ki}, kd={config.kd}")

    # Step 2: Run the controller on a setpoint-tracking error sequence
    print("\n[2] Running PID controller...")
    controller = configs[0].build()
    errors = [10.0, 8.0, 5.0, 2.0, 0.5, 0.1, -0.2, 0.1, 0.0]
    records = trace_batch(controller, errors)
    print(summarize_trajectory(records))

    # Step 3: Clock initialization, as a node does before its first read
    print("\n[3] Seeding the simulated clock...")
    store = ChannelStore()
    values = store.initval("[0.0, 1.5, 2.5, 3.5]")
    print(f"    initval -> {values}, simtime = {store.simtime}")

    # Step 4: Repeat from a reset state and plot
    print("\n[4] Batch run from reset state...")
    controller.reset()
    records = trace_batch(controller, [5.0, 4.0, 3.0, 2.0, 1.0])
    print(f"    Outputs: {[round(record.output, 3) for record in records]}")
    out_path = plot_trajectory(records, "concore_basic_example.png", title=f"Node {controller.id}")
    print(f"    Saved to: {out_path}")

    print("\n" + "=" * 60)
    print("Example complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
