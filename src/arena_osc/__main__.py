#!/usr/bin/env python3
"""
Arena OSC interactive console.

Listens to Arena's OSC output and shows the mirrored playback state.
"""

import argparse

from .config import ArenaConfig, apply_env_file
from .instance import ArenaInstance
from .timecode import seconds_to_timecode


def print_status(status):
    print(f"Listener: {'active' if status['listener_active'] else 'inactive'} "
          f"(sending to {status['target']})")
    if status['active_column']:
        print(f"Column: {status['active_column']} ({status['active_column_name']})")
    print(f"Tempo: {status['tempo']:.1f} BPM")


def print_layers(status):
    if not status['layers']:
        print("No layers seen yet")
        return
    for layer_num, layer in status['layers'].items():
        if not layer['clip']:
            print(f"Layer {layer_num}: -")
            continue
        duration = seconds_to_timecode(layer['duration']) if layer['duration'] else '--:--'
        marker = '~' if layer['estimated'] else ''
        print(f"Layer {layer_num}: clip {layer['clip']} '{layer['name']}' "
              f"{seconds_to_timecode(layer['elapsed'])} / {marker}{duration} "
              f"(-{seconds_to_timecode(layer['remaining'])})")


def main():
    apply_env_file()
    defaults = ArenaConfig.from_env()

    parser = argparse.ArgumentParser(description="Mirror Resolume Arena playback state over OSC")
    parser.add_argument("--host", default=defaults.host, help=f"Arena host (default: {defaults.host})")
    parser.add_argument("--port", type=int, default=defaults.port,
                        help=f"Arena OSC input port (default: {defaults.port})")
    parser.add_argument("--rx-port", type=int, default=defaults.osc_rx_port,
                        help=f"Port Arena sends OSC output to (default: {defaults.osc_rx_port})")
    args = parser.parse_args()

    defaults.host = args.host
    defaults.port = args.port
    defaults.osc_rx_port = args.rx_port
    instance = ArenaInstance(defaults)

    print("\n=== Arena OSC ===")
    print("Commands: start, stop, status, layers, refresh, column <n>, "
          "play <layer> <column>, clear <layer>, end <layer> <seconds>, quit")

    while True:
        try:
            cmd = input("\n> ").strip().lower().split()

            if not cmd:
                continue

            if cmd[0] == "start":
                instance.start()
            elif cmd[0] == "stop":
                instance.stop()
            elif cmd[0] in ["status", "layers", "refresh", "column", "play", "clear", "end"]:
                if instance.thread is None:
                    print("Not running - use 'start' first")
                    continue
                handle_running_command(instance, cmd)
            elif cmd[0] in ["quit", "exit"]:
                instance.close()
                break
            else:
                print(f"Unknown command: {' '.join(cmd)}")

        except (KeyboardInterrupt, EOFError):
            print("\nShutting down...")
            instance.close()
            break


def handle_running_command(instance, cmd):
    osc = instance.get_osc_api()
    try:
        if cmd[0] == "status":
            print_status(instance.call(instance.status))
        elif cmd[0] == "layers":
            print_layers(instance.call(instance.status))
        elif cmd[0] == "refresh":
            instance.call(instance.state.scheduler.query_all)
        elif osc is None:
            print("No OSC send port configured")
        elif cmd[0] == "column" and len(cmd) > 1:
            instance.call(osc.trigger_column, int(cmd[1]))
        elif cmd[0] == "play" and len(cmd) > 2:
            instance.call(osc.connect_clip, int(cmd[1]), int(cmd[2]))
        elif cmd[0] == "clear" and len(cmd) > 1:
            instance.call(osc.clear_layer, int(cmd[1]))
        elif cmd[0] == "end" and len(cmd) > 2:
            instance.call(osc.go_to_seconds_from_end, int(cmd[1]), float(cmd[2]))
        else:
            print(f"Missing arguments: {' '.join(cmd)}")
    except ValueError:
        print(f"Invalid number in: {' '.join(cmd)}")


if __name__ == "__main__":
    main()
