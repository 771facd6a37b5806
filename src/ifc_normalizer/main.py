"""
IFC Normalizer

Command-line entry point for aligning IFC element properties with the
BIM Portal property catalog.

Commands:
- process: normalize a file and write the output IFC plus reports
- validate: basic checks of an IFC file without normalizing
- info: show available profiles
- serve: run the job HTTP API
"""

import argparse
import asyncio
import dataclasses
import json
import re
import shutil
import sys
import time
from pathlib import Path

from ifc_normalizer import __version__
from ifc_normalizer.catalog.client import BIMPortalClient
from ifc_normalizer.catalog.settings import CatalogSettings
from ifc_normalizer.errors import NormalizerError
from ifc_normalizer.logging_config import configure_logging
from ifc_normalizer.normalizer.processing import process_ifc
from ifc_normalizer.profiles.config import (
    Profile, ValuePolicy, get_available_profiles, get_profile,
)
from ifc_normalizer.reporting.reporter import Reporter, changes_by_property


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="ifc-normalizer",
        description="Align IFC element properties with the BIM Portal catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  ifc-normalizer process model.ifc
  ifc-normalizer process model.ifc --output result.ifc --report report.json
  ifc-normalizer process model.ifc --xlsx report.xlsx --profile slabs
  ifc-normalizer validate model.ifc
        """
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    process = subparsers.add_parser("process", help="Normalize an IFC file")
    process.add_argument("file", help="Path to IFC file")
    process.add_argument(
        "--output", "-o",
        default=None,
        help="Output IFC path (default: <name>_normalized.ifc)"
    )
    process.add_argument(
        "--report", "-r",
        default=None,
        help="Output JSON report path (default: <name>_report.json)"
    )
    process.add_argument(
        "--xlsx",
        default=None,
        help="Output Excel report path (optional)"
    )
    process.add_argument(
        "--profile",
        choices=[p.value for p in Profile],
        default=Profile.WALLS.value,
        help="Normalization profile. Default: walls"
    )
    process.add_argument(
        "--apply-defaults",
        action="store_true",
        help="Propose profile defaults instead of keeping existing values"
    )
    process.add_argument(
        "--write-back",
        action="store_true",
        help="Write missing/changed properties into the output IFC"
    )
    process.add_argument(
        "--no-backup",
        action="store_true",
        help="Do not create a backup of the input file"
    )
    process.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    process.add_argument("--quiet", "-q", action="store_true",
                         help="Quiet mode - only output report path")

    validate = subparsers.add_parser("validate", help="Validate an IFC file (no normalization)")
    validate.add_argument("file", help="Path to IFC file")
    validate.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    subparsers.add_parser("info", help="Show version and available profiles")

    serve = subparsers.add_parser("serve", help="Run the job HTTP API")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address. Default: 127.0.0.1")
    serve.add_argument("--port", type=int, default=3000, help="Port. Default: 3000")
    serve.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    return parser.parse_args(argv)


def print_summary(result, report_path, output_path, elapsed):
    """Print a summary of results to console."""
    print("\n" + "=" * 60)
    print("IFC NORMALIZATION RESULTS")
    print("=" * 60)
    print(f"  Schema:              {result.schema}")
    print(f"  Target class:        {result.target_class}")
    print(f"  Elements analyzed:   {result.elements_analyzed}")
    print(f"  Properties checked:  {result.properties_checked}")
    print(f"  Report entries:      {len(result.report)}")
    print(f"  Processing time:     {elapsed:.2f}s")

    counts = changes_by_property(result.report)
    if counts:
        print("\n  Entries per property:")
        for name, count in counts.items():
            print(f"    • {name}: {count}")

    print("\n" + "=" * 60)
    print(f"✅ Normalized IFC saved to: {output_path}")
    print(f"✅ Report saved to: {report_path}")


async def _normalize(data: bytes, profile):
    async with BIMPortalClient(CatalogSettings()) as client:
        return await process_ifc(data, client, profile)


def run_process(args) -> int:
    """Normalize one file. Returns the exit code."""
    file_path = Path(args.file)

    if not file_path.exists():
        print(f"Error: IFC file not found: {file_path}", file=sys.stderr)
        return 1
    if file_path.suffix.lower() != ".ifc":
        print("Error: only IFC files (.ifc) are supported", file=sys.stderr)
        return 1

    output_path = Path(args.output) if args.output else \
        file_path.with_name(f"{file_path.stem}_normalized{file_path.suffix}")
    report_path = Path(args.report) if args.report else \
        file_path.with_name(f"{file_path.stem}_report.json")

    profile = get_profile(Profile(args.profile))
    profile = dataclasses.replace(
        profile,
        value_policy=ValuePolicy.APPLY_DEFAULT if args.apply_defaults else ValuePolicy.RETAIN,
        write_back=args.write_back,
    )

    configure_logging(level="DEBUG" if args.verbose else "WARNING")

    if not args.quiet:
        print(f"📂 IFC file: {file_path}")
        print(f"🔧 Profile:  {profile.name} ({profile.target_class} / {profile.pset_name})")
        print("\nProcessing...")

    try:
        data = file_path.read_bytes()

        if not args.no_backup:
            backup_path = file_path.with_name(f"{file_path.stem}.backup{file_path.suffix}")
            shutil.copyfile(file_path, backup_path)
            if args.verbose:
                print(f"  Backup created: {backup_path}")

        start = time.monotonic()
        result = asyncio.run(_normalize(data, profile))
        elapsed = time.monotonic() - start

        output_path.write_bytes(result.output)

        reporter = Reporter()
        json_report = reporter.generate_json_report(result, metadata={
            "processingTimeSeconds": round(elapsed, 2),
            "originalFile": str(file_path),
            "originalFileSize": len(data),
            "outputFile": str(output_path),
            "outputFileSize": len(result.output),
            "profile": args.profile,
        })
        with open(report_path, "w", encoding="utf-8") as f:
            json.dump(json_report, f, indent=2, ensure_ascii=False, default=str)

        if args.xlsx:
            xlsx_path = reporter.generate_report(result, args.xlsx)
            if not args.quiet:
                print(f"  Excel report: {xlsx_path}")

        if args.quiet:
            print(report_path)
        else:
            print_summary(result, report_path, output_path, elapsed)

    except NormalizerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1

    return 0


def run_validate(args) -> int:
    """Basic checks of an IFC file. Returns the exit code."""
    file_path = Path(args.file)
    print(f"ℹ️  Validating IFC file: {file_path}")

    if not file_path.exists():
        print(f"❌ File {file_path} not found", file=sys.stderr)
        return 1
    if file_path.suffix.lower() != ".ifc":
        print("⚠️  Warning: file has no .ifc extension")

    data = file_path.read_bytes()
    head = data[:1000].decode("latin-1")
    print(f"✅ File read ({len(data) / 1024 / 1024:.2f} MB)")

    ok = True
    if "ISO-10303-21" in head:
        print("✅ IFC header found")
    else:
        print("⚠️  No standard IFC header found")
        ok = False

    if "FILE_SCHEMA" in head:
        print("✅ FILE_SCHEMA found")
    else:
        print("⚠️  No FILE_SCHEMA found")
        ok = False

    entities = len(re.findall(rb"#\d+\s*=", data))
    print(f"ℹ️  Entities: {entities}")

    print("✅ Validation finished" if ok else "⚠️  Validation finished with warnings")
    return 0 if ok else 1


def run_info() -> int:
    print(f"IFC Normalizer {__version__}")
    print("Aligns IFC element properties with the BIM Portal property catalog.\n")
    print("Profiles:")
    for profile, name, description in get_available_profiles():
        print(f"  {profile.value:<8} {name}: {description}")
    return 0


def run_serve(args) -> int:
    """Serve the upload/status/download API until interrupted."""
    import uvicorn

    from ifc_normalizer.api.app import create_app

    configure_logging(level="DEBUG" if args.verbose else "INFO")
    uvicorn.run(create_app(), host=args.host, port=args.port, log_config=None)
    return 0


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    if args.command == "process":
        code = run_process(args)
    elif args.command == "validate":
        code = run_validate(args)
    elif args.command == "serve":
        code = run_serve(args)
    else:
        code = run_info()

    sys.exit(code)


if __name__ == "__main__":
    main()
