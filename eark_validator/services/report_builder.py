"""
Report builder for validation results.

Aggregates the outcomes of the backend's upload and report calls into one
structured report: classified items, counters, verdict and the echoed
inputs/outputs of the call. Pure transformation without I/O.
"""
import json
import logging
from typing import List, Optional

from eark_validator.core.constants import (
    CONTEXT_INPUT,
    CONTEXT_OUTPUT,
    INPUT_ARCHIVE,
    INPUT_DIGEST,
    INPUT_REPORT_URL,
    NO_REPORT_AVAILABLE_MESSAGE,
    OUTPUT_REPORT_URL,
    OUTPUT_UPLOAD,
    OUTPUT_VALIDATION,
    PROFILE_PREFIX,
    SCHEMA_PREFIX,
    WARNING_SEVERITY,
)
from eark_validator.core.utils import (
    encode_archive_to_base64,
    replace_bad_characters,
    replace_bad_characters_deep,
)
from eark_validator.models.backend_models import Finding, UploadOutcome, ValidationOutcome
from eark_validator.models.report_models import (
    AnyContent,
    ItemLevel,
    Report,
    ReportCounters,
    ReportItem,
    ValueEmbedding,
    Verdict,
)

logger = logging.getLogger(__name__)


class ReportBuilder:
    """Builds reports from backend outcomes."""

    def build(
        self,
        upload: Optional[UploadOutcome],
        validation: Optional[ValidationOutcome],
        archive: Optional[bytes] = None,
        digest: Optional[str] = None,
        report_url: Optional[str] = None
    ) -> Report:
        """Build the report for one protocol call.

        Validation findings come first (schema errors, profile errors, profile
        warnings), followed by the upload failure message if there is one.
        Both are aggregated: an upload failure counts as an error even when a
        validation outcome is also present.

        Args:
            upload: Outcome of the upload call, if made
            validation: Outcome of the report call, if made
            archive: Archive bytes supplied to this call (echoed as base64)
            digest: Digest supplied to this call
            report_url: Report URL supplied to this call

        Returns:
            Report with items, counters, verdict and context
        """
        items: List[ReportItem] = []

        if validation is not None:
            for error in validation.schema_errors:
                items.append(self._create_item(
                    ItemLevel.ERROR, f"[{SCHEMA_PREFIX}] {replace_bad_characters(error)}"
                ))
            for finding in validation.profile_errors:
                items.append(self._finding_to_item(PROFILE_PREFIX, finding))
            for finding in validation.profile_warnings:
                items.append(self._finding_to_item(PROFILE_PREFIX, finding))

        if upload is not None and upload.message is not None:
            items.append(self._create_item(ItemLevel.ERROR, replace_bad_characters(upload.message)))

        report = self._finalise(Report(items=items))
        report.context = AnyContent(item=[
            self._build_inputs(archive, digest, report_url),
            self._build_outputs(upload, validation),
        ])

        logger.info(
            f"Built report: result={report.result.value}, "
            f"errors={report.counters.errors}, warnings={report.counters.warnings}"
        )
        return report

    def build_no_report_available(self) -> Report:
        """Report returned when the report step runs before a successful upload."""
        report = self._finalise(Report(items=[
            self._create_item(ItemLevel.ERROR, NO_REPORT_AVAILABLE_MESSAGE)
        ]))
        logger.info("Built report for missing report URL: result=FAILURE")
        return report

    def build_empty(self) -> Report:
        """Successful report without items (used by processing calls)."""
        return self._finalise(Report())

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _finding_to_item(self, prefix: str, finding: Finding) -> ReportItem:
        """Map a backend finding to a report item.

        Text is "[prefix][rule] message", omitting the rule segment when the
        finding has no rule id and the message segment when it has no message.
        """
        description = f"[{prefix}]"
        if finding.rule_id is not None:
            description += f"[{finding.rule_id}]"
        if finding.message is not None:
            description += f" {replace_bad_characters(finding.message)}"

        level = ItemLevel.WARNING if finding.severity == WARNING_SEVERITY else ItemLevel.ERROR
        return self._create_item(
            level,
            description,
            test=finding.test,
            assertion_id=finding.rule_id,
            location=finding.location
        )

    def _create_item(
        self,
        level: ItemLevel,
        description: str,
        test: Optional[str] = None,
        assertion_id: Optional[str] = None,
        location: Optional[str] = None
    ) -> ReportItem:
        return ReportItem(
            level=level,
            description=description,
            test=test,
            assertion_id=assertion_id,
            location=location
        )

    def _finalise(self, report: Report) -> Report:
        """Derive counters and verdict from the tagged items."""
        errors = len(report.errors)
        warnings = len(report.warnings)
        report.counters = ReportCounters(errors=errors, warnings=warnings, informational=0)
        if errors > 0:
            report.result = Verdict.FAILURE
        elif warnings > 0:
            report.result = Verdict.WARNING
        else:
            report.result = Verdict.SUCCESS
        return report

    def _build_inputs(
        self,
        archive: Optional[bytes],
        digest: Optional[str],
        report_url: Optional[str]
    ) -> AnyContent:
        inputs = AnyContent(name=CONTEXT_INPUT, type="map")
        if archive is not None:
            inputs.item.append(self._create_content(
                INPUT_ARCHIVE, encode_archive_to_base64(archive), "binary", ValueEmbedding.BASE64
            ))
        if digest is not None:
            inputs.item.append(self._create_content(INPUT_DIGEST, digest))
        if report_url is not None:
            inputs.item.append(self._create_content(INPUT_REPORT_URL, report_url))
        return inputs

    def _build_outputs(
        self,
        upload: Optional[UploadOutcome],
        validation: Optional[ValidationOutcome]
    ) -> AnyContent:
        outputs = AnyContent(name=CONTEXT_OUTPUT, type="map")
        if upload is not None:
            outputs.item.append(self._create_content(OUTPUT_UPLOAD, self._serialise(upload)))
            if upload.has_report_url:
                outputs.item.append(self._create_content(OUTPUT_REPORT_URL, upload.report_url))
        if validation is not None:
            outputs.item.append(self._create_content(OUTPUT_VALIDATION, self._serialise(validation)))
        return outputs

    def _serialise(self, outcome) -> str:
        """Pretty-print an outcome with the backend's field names.

        Quotes are normalised on the values before encoding so the result
        stays valid JSON.
        """
        data = replace_bad_characters_deep(outcome.model_dump(mode="json", by_alias=True))
        return json.dumps(data, indent=2, ensure_ascii=False)

    def _create_content(
        self,
        name: str,
        value: str,
        type_: str = "string",
        embedding: ValueEmbedding = ValueEmbedding.STRING
    ) -> AnyContent:
        return AnyContent(name=name, value=value, type=type_, embedding_method=embedding)
