#!/usr/bin/env python3
"""
Walk a file through three renames and print its lineage.

Uses a throwaway registry directory, so it can be run from a checkout
without touching any real registry files.
"""

import sys
import tempfile
from pathlib import Path

# Add keyreg to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from keyreg import AssignRequest, RegistryConfig, RegistryService


def main():
    config_path = Path(__file__).parent / "keyreg.yaml"

    with tempfile.TemporaryDirectory() as tmpdir:
        config = RegistryConfig.from_file(config_path).with_overrides(base_dir=tmpdir)
        service = RegistryService(config)

        source = Path(tmpdir) / "initial_file.fa"
        source.write_text(">seq1\nACGT\n")
        print(f"Registry: {config.base_dir}")

        name = str(source)
        for step in range(3):
            result = service.assign_key(AssignRequest(
                original_name=name,
                prefix="gensp.pre",
                extension="fa",
                comment=f"rename step {step + 1}",
                move=True,
            ))
            print(f"  {Path(name).name} -> {result.new_name}")
            name = str(result.new_path)

        print()
        print("Lineage:")
        report = service.report_lineage(result.key)
        for key, chain in report.chains.items():
            print(f"  {key}: {' <- '.join(chain)}")

        print()
        print("Operation log:")
        for line in service.oplog.lines():
            print(f"  {line}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
