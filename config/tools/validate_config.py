# config/tools/validate_config.py

import sys           # for exit codes
from pprint import pprint  # for structured printing

# make src discoverable if running as a script
from pathlib import Path
# __file__ is .../config/tools/validate_config.py
# parents[2] is the project root; append ROOT/src
PROJECT_ROOT = Path(__file__).resolve().parents[2]
sys.path.append(str(PROJECT_ROOT / "src"))

from dotenv import load_dotenv  # .env holds the oracle credentials

from agent.config import load_agent_config
from agent.errors import AgentConfigError
from llm_stack.config import OracleConfig

DEFAULT_PATH = PROJECT_ROOT / "config" / "agent.example.yaml"


def main(argv: list[str] | None = None) -> int:
    """Load and print the resolved agent + oracle config, failing fast on errors."""
    args = sys.argv[1:] if argv is None else argv
    path = Path(args[0]) if args else DEFAULT_PATH

    load_dotenv()
    try:
        config = load_agent_config(path)
    except (AgentConfigError, FileNotFoundError) as e:
        print("Config validation FAILED:", file=sys.stderr)
        print(repr(e), file=sys.stderr)
        return 1

    oracle = OracleConfig.from_env()

    print("Config validation OK.")
    print("\nFile:", path)
    print("\nAgent:")
    pprint(vars(config))
    print("\nOracle provider:", oracle.provider or "<none> (loop explores north)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
