import json

from toolshape.core.types import RawCapture
from toolshape.tools.npm_audit import NpmAuditTool

REPORT = {
    "auditReportVersion": 2,
    "vulnerabilities": {
        "lodash": {
            "name": "lodash",
            "severity": "high",
            "via": [
                {
                    "source": 1096307,
                    "name": "lodash",
                    "title": "Prototype Pollution in lodash",
                    "url": "https://github.com/advisories/GHSA-p6mc-m468-83gw",
                    "severity": "high",
                    "range": "<4.17.21",
                }
            ],
            "range": "<4.17.21",
            "fixAvailable": True,
        },
        "express": {
            "name": "express",
            "severity": "moderate",
            "via": ["body-parser"],
            "range": "4.0.0 - 4.17.2",
            "fixAvailable": {"name": "express", "version": "4.18.2"},
        },
    },
    "metadata": {"vulnerabilities": {"info": 0, "low": 0, "moderate": 1, "high": 1, "critical": 0, "total": 2}},
}


def test_npm_audit_report():
    tool = NpmAuditTool()
    result = tool.parse_output(RawCapture(stdout=json.dumps(REPORT), stderr="", exit_code=1))
    assert result.success is False
    assert (result.total, result.high, result.moderate) == (2, 1, 1)
    lodash = result.vulnerabilities[0]
    assert lodash.url == "https://github.com/advisories/GHSA-p6mc-m468-83gw"
    assert tool.format(result).splitlines() == [
        "2 vulnerabilities (1 high, 1 moderate)",
        "  lodash (high): Prototype Pollution in lodash [<4.17.21] (fix available)",
        "  express (moderate): via body-parser [4.0.0 - 4.17.2] (fix available)",
    ]
    compact = tool.compact(result)
    assert "vulnerabilities" not in compact.dump()
    assert tool.format_compact(compact) == "2 vulnerabilities (1 high, 1 moderate)"


def test_npm_audit_counts_tiers_without_metadata():
    report = {"vulnerabilities": {"minimist": {"name": "minimist", "severity": "critical", "via": []}}}
    result = NpmAuditTool().parse_output(RawCapture(stdout=json.dumps(report), stderr="", exit_code=1))
    assert (result.total, result.critical) == (1, 1)
    assert result.vulnerabilities[0].title == "Unknown"


def test_npm_audit_clean():
    report = {"vulnerabilities": {}, "metadata": {"vulnerabilities": {"total": 0}}}
    tool = NpmAuditTool()
    result = tool.parse_output(RawCapture(stdout=json.dumps(report), stderr=""))
    assert result.success is True
    assert tool.format(result) == "No vulnerabilities found."


def test_npm_audit_error_object():
    report = {"error": {"code": "ENOLOCK", "summary": "This command requires an existing lockfile."}}
    tool = NpmAuditTool()
    result = tool.parse_output(RawCapture(stdout=json.dumps(report), stderr="", exit_code=1))
    assert tool.format(result) == "npm audit failed: This command requires an existing lockfile."
