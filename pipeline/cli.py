# cli.py
import argparse
import json
import sys
from pathlib import Path

if __package__ in (None, ""):
    project_root = Path(__file__).resolve().parent.parent
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))

from pipeline.engine import run_upload
from pipeline.errors import UploadError
from utils.config_loader import load_settings
from utils.logger import get_logger, log_stage


def main():
    parser = argparse.ArgumentParser(description="Bulk-upload IP/CIDR entries from a file into a Fastly ACL.")
    parser.add_argument("--service-id", required=True, help="Fastly service ID")
    parser.add_argument("--acl-id", required=True, help="Fastly ACL ID")
    parser.add_argument("--file", required=True, help="Text file with one IP or CIDR per line")
    parser.add_argument("--comment", help="Comment stored with every entry (default: 'Bulk upload')")
    parser.add_argument("--config", help="Path to an uploader settings YAML file")
    parser.add_argument("--output", help="Write the JSON report to this path instead of stdout")
    parser.add_argument("--log-level", default=None)
    args = parser.parse_args()

    settings = load_settings(args.config)
    if args.log_level:
        settings = settings.model_copy(update={"log_level": args.log_level})

    logger = get_logger("cli", settings.log_level, "cli.log")
    logger.info(
        "CLI invocation | service=%s acl=%s file=%s output=%s",
        args.service_id,
        args.acl_id,
        args.file,
        args.output,
    )

    if not Path(args.file).is_file():
        parser.error(f"--file {args.file} does not exist")

    try:
        with log_stage(logger, "upload_total"):
            report = run_upload(
                settings,
                service_id=args.service_id,
                acl_id=args.acl_id,
                file_path=args.file,
                comment=args.comment,
                output=args.output,
            )
    except UploadError as e:
        logger.error("Upload failed: %s", e)
        print(json.dumps(e.to_payload(), indent=2), file=sys.stderr)
        sys.exit(1)

    if not args.output:
        print(json.dumps(report.model_dump(exclude_none=True), indent=2, ensure_ascii=False))

    if report.failed:
        logger.warning("%d entries were not accepted by Fastly", report.failed)


if __name__ == "__main__":
    main()
