import sys

from aeo_csv.execution.config_executor import ConfigExecutor


def main():
    if len(sys.argv) != 2:
        print("Usage: python -m aeo_csv.run_config <config.yaml>")
        sys.exit(1)

    executor = ConfigExecutor(sys.argv[1])
    result = executor.execute()

    print("\n=== Import Completed ===")
    print(f"Spec: {result.get('spec')}")
    print(f"Rows: {result['summary']['accepted_rows']}")
    print(f"Dropped: {result['summary']['dropped_rows']}")
    for path in result.get("files", []):
        print(f"Wrote: {path}")


if __name__ == "__main__":
    main()
