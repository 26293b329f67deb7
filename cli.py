import argparse
import json
import os
import shutil
import threading

from algorithms import MathTools, PlateCalculator, WeightConverter
from analytics_service import format_duration
from gym_service import GymService
from rest_timer import (
    AlertScheduler,
    Notifier,
    RestTimer,
    Ticker,
    TimerSnapshot,
    TimerState,
    format_time,
)


def export_sessions(db_path: str, yaml_path: str | None, output_dir: str = ".", user_id: str = "local") -> str:
    service = GymService(db_path, user_id, yaml_path)
    try:
        data = [s.model_dump(mode="json") for s in service.sessions]
    finally:
        service.close()
    out_path = os.path.join(output_dir, f"sessions_{user_id}.json")
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    return out_path


def backup_db(db_path: str, backup_path: str) -> None:
    shutil.copy(db_path, backup_path)


def restore_db(backup_path: str, db_path: str) -> None:
    shutil.copy(backup_path, db_path)


def demo_data(db_path: str, yaml_path: str | None, user_id: str = "local") -> bool:
    """Populate the database with two demo sessions if it has none."""
    service = GymService(db_path, user_id, yaml_path)
    try:
        added = service.add_mock_data()
        if added:
            print("Demo data inserted")
        else:
            print("Database already contains sessions")
        for label, sessions in service.sessions_by_month():
            print(label)
            for s in sessions:
                print(f"  {s.date.date().isoformat()}  {format_duration(s.duration)}  {s.total_volume:.0f}")
        return added
    finally:
        service.close()


def plates_text(target: float, unit: str, bar: float | None = None) -> str:
    per_side, leftover = PlateCalculator.plates_per_side(target, bar, unit)
    plates = " + ".join(f"{p:g}" for p in per_side) or "-"
    text = f"Per side: {plates} {unit}"
    if leftover:
        text += f" (cannot load {leftover:g} {unit})"
    return text


def bar_total_text(plates_one_side: list[float], unit: str, bar: float | None = None) -> str:
    bar_weight = PlateCalculator.default_bar(unit) if bar is None else bar
    total = PlateCalculator.total_weight(bar_weight, plates_one_side)
    return f"Total: {total:g} {unit}"


def one_rep_max_text(weight: float, reps: int) -> str:
    orm = MathTools.brzycki_1rm(weight, reps)
    lines = [f"1RM: {orm:.1f}"]
    for pct, load in MathTools.percentage_table(orm):
        lines.append(f"{pct}%: {load:.1f}")
    return "\n".join(lines)


def run_timer(seconds: int, sound: bool = True) -> None:
    done = threading.Event()

    def show(snap: TimerSnapshot) -> None:
        print(f"\r{format_time(snap.remaining)}", end="", flush=True)
        if snap.state is not TimerState.RUNNING:
            print()
            done.set()

    notifier = Notifier(enable_sound=sound, enable_haptics=False)
    timer = RestTimer(
        default_duration=seconds,
        notifier=notifier,
        scheduler=AlertScheduler(notifier),
        ticker_factory=Ticker,
    )
    timer.subscribe(show)
    timer.start()
    try:
        done.wait()
    except KeyboardInterrupt:
        timer.stop()


def main() -> None:
    parser = argparse.ArgumentParser(description="Utility commands")
    sub = parser.add_subparsers(dest="cmd", required=True)

    exp = sub.add_parser("export")
    exp.add_argument("--db", default="liftlog.db")
    exp.add_argument("--yaml", default=None)
    exp.add_argument("--user", default="local")
    exp.add_argument("--out", default=".")

    bkp = sub.add_parser("backup")
    bkp.add_argument("--db", default="liftlog.db")
    bkp.add_argument("--out", default="backup.db")

    rst = sub.add_parser("restore")
    rst.add_argument("--in", dest="src", default="backup.db")
    rst.add_argument("--db", default="liftlog.db")

    demo = sub.add_parser("demo")
    demo.add_argument("--db", default="liftlog.db")
    demo.add_argument("--yaml", default=None)
    demo.add_argument("--user", default="local")

    conv = sub.add_parser("convert")
    conv.add_argument("--weight", type=float, required=True)
    conv.add_argument("--unit", choices=["kg", "lbs"], required=True)

    plates = sub.add_parser("plates")
    plates.add_argument("--target", type=float, required=True)
    plates.add_argument("--unit", choices=["kg", "lbs"], default="kg")
    plates.add_argument("--bar", type=float, default=None)

    total = sub.add_parser("bar-total")
    total.add_argument("--plates", type=float, nargs="*", default=[])
    total.add_argument("--unit", choices=["kg", "lbs"], default="kg")
    total.add_argument("--bar", type=float, default=None)

    orm = sub.add_parser("one-rep-max")
    orm.add_argument("--weight", type=float, required=True)
    orm.add_argument("--reps", type=int, required=True)

    tmr = sub.add_parser("timer")
    tmr.add_argument("--seconds", type=int, default=90)
    tmr.add_argument("--mute", action="store_true")

    args = parser.parse_args()

    if args.cmd == "export":
        print(export_sessions(args.db, args.yaml, args.out, args.user))
    elif args.cmd == "backup":
        backup_db(args.db, args.out)
    elif args.cmd == "restore":
        restore_db(args.src, args.db)
    elif args.cmd == "demo":
        demo_data(args.db, args.yaml, args.user)
    elif args.cmd == "convert":
        if args.unit == "kg":
            print(f"{args.weight} kg = {WeightConverter.kg_to_lb(args.weight)} lbs")
        else:
            print(f"{args.weight} lbs = {WeightConverter.lb_to_kg(args.weight)} kg")
    elif args.cmd == "plates":
        print(plates_text(args.target, args.unit, args.bar))
    elif args.cmd == "bar-total":
        print(bar_total_text(args.plates, args.unit, args.bar))
    elif args.cmd == "one-rep-max":
        print(one_rep_max_text(args.weight, args.reps))
    elif args.cmd == "timer":
        run_timer(args.seconds, not args.mute)


if __name__ == "__main__":
    main()
