"""
Control Loop Example for concore

Runs a PID controller against a first-order plant through real mailbox
files. The plant lives in the same process and updates its output whenever
the controller sleeps between reads, standing in for a second node.

Layout under ./mailbox:
    1/u   controller output  [t, u]
    1/ym  plant measurement  [t, ym]
"""

import shutil
from pathlib import Path

from concore import ChannelStore, Mailbox, PIDNode, decode, encode, run_control_loop
from concore.reporting import summarize_trajectory

BASE = Path("mailbox")


class Plant:
    """First-order response of ym toward the latest control output."""

    def __init__(self, base: Path, gain: float = 0.3) -> None:
        self.u_path = base / "1" / "u"
        self.ym_path = base / "1" / "ym"
        self.gain = gain
        self.ym = 0.0

    def __call__(self, seconds: float) -> None:
        timestamp, u = 0.0, 0.0
        if self.u_path.exists():
            message = decode(self.u_path.read_text(encoding="utf-8"))
            timestamp, u = float(message[0]), float(message[1])
        self.ym += self.gain * (u - self.ym)
        self.ym_path.parent.mkdir(parents=True, exist_ok=True)
        self.ym_path.write_text(encode([timestamp, self.ym]), encoding="utf-8")


def main():
    shutil.rmtree(BASE, ignore_errors=True)
    store = ChannelStore(delay=0.0, inpath=str(BASE), outpath=str(BASE))
    mailbox = Mailbox(store, sleep=Plant(BASE))
    controller = PIDNode("pid_controller", kp=0.4, ki=0.05, kd=0.05)

    records = run_control_loop(controller, mailbox, setpoint=100.0, maxtime=10, init_literal="[0.0, 0.0]")
    print(summarize_trajectory(records, title=f"Node {controller.id} (setpoint 100)"))
    print(f"Retry count: {store.retrycount}")
    print(f"Last message: {(BASE / '1' / 'u').read_text(encoding='utf-8')}")


if __name__ == "__main__":
    main()
