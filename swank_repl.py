import asyncio
import shlex
import sys
from pathlib import Path

from swank.swank_commands import SwankCommands
from swank.swank_config import configure_logging, load_config
from swank.swank_printer import Printer

# A basic awaitable input prompt.
async def ainput(prompt: str) -> str:
    loop = asyncio.get_running_loop()
    sys.stdout.write(prompt)
    sys.stdout.flush()
    return await loop.run_in_executor(None, sys.stdin.readline)

def read_arg(token: str):
    """Console arguments: nil and t are the protocol booleans, digits are ints."""
    if token == "nil":
        return None
    if token == "t":
        return True
    if token.lstrip("-").isdigit():
        return int(token)
    return token

def make_commands() -> SwankCommands:
    config = load_config()
    configure_logging(config)
    return SwankCommands(config=config)

async def compile_script_file(file_path: str):
    """Compile and load a file non-interactively and exit with appropriate status."""
    commands = make_commands()
    printer = Printer()
    p = Path(file_path)
    if not p.is_file():
        print(f"Error: file not found: {file_path}", file=sys.stderr)
        raise SystemExit(1)
    unit = commands.compile_file(str(p))
    print(printer.pformat(unit))
    if not unit.succeeded:
        for note in unit.diagnostics:
            print(note.message, file=sys.stderr)
        raise SystemExit(1)

async def main():
    """Compile a file when provided, otherwise start the interactive command loop."""
    if len(sys.argv) > 1:
        arg = sys.argv[1]
        if not arg.startswith("-"):
            await compile_script_file(arg)
            return

    print("swank console v0.1")
    print("Type '<operation> <args...>', 'help' to list operations, 'exit' or Ctrl+D to quit.")

    commands = make_commands()
    printer = Printer()

    while True:
        try:
            raw = await ainput(f"{commands.current_namespace}> ")
            if raw == "":
                raise EOFError
            line = raw.strip()

            if not line:
                continue
            if line == "exit":
                break
            if line == "help":
                print(" ".join(commands.operations()))
                continue

            name, *args = shlex.split(line)
            result = commands.dispatch(name, *[read_arg(a) for a in args])
            print(printer.pformat(result))

        except EOFError:
            print("\nExiting.")
            break
        except Exception as e:
            # Report the failure and keep the loop alive
            print(f"Error: {type(e).__name__}: {e}", file=sys.stderr)

if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nExiting.")
