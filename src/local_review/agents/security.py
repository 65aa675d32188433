"""Security-focused analysis task."""

from local_review.agents.base import LineRule, RuleBasedTask
from local_review.models.findings import Category

_CODE = ("*.cs", "*.ts", "*.js", "*.json", "*.config", "*.yaml", "*.yml")


class SecurityTask(RuleBasedTask):
    """Flags injection, secret and trust-boundary problems on added lines."""

    TASK_ID = "security"
    DESCRIPTION = "Hardcoded secrets, injection, unsafe DOM and TLS handling"

    RULES = [
        LineRule(
            pattern=r"""(password|passwd|pwd|secret|api[_-]?key|access[_-]?token)\s*["']?\s*[:=]\s*["'][^"'\s]{6,}["']""",
            title="Hardcoded credential",
            category=Category.SECURITY,
            detail="A secret value is committed in source.",
            suggestion="Load it from user secrets, environment variables or a key vault.",
            confidence=85,
            file_globs=_CODE,
            include_tests=False,
            ignore_case=True,
        ),
        LineRule(
            pattern=r"""\$@?"[^"]*\b(SELECT|INSERT|UPDATE|DELETE)\b[^"]*\{""",
            title="SQL built with string interpolation",
            category=Category.SECURITY,
            detail="User-controlled values interpolated into SQL allow injection.",
            suggestion="Use parameters (SqlParameter, Dapper params or FromSqlInterpolated).",
            confidence=85,
            file_globs=("*.cs",),
            ignore_case=True,
        ),
        LineRule(
            pattern=r"""\b(SELECT|INSERT|UPDATE|DELETE)\b[^"']*["']\s*\+\s*\w""",
            title="SQL built with string concatenation",
            category=Category.SECURITY,
            detail="Concatenating values into SQL allows injection.",
            suggestion="Use parameterized queries.",
            confidence=80,
            file_globs=("*.cs", "*.ts", "*.js"),
            ignore_case=True,
        ),
        LineRule(
            pattern=r"""FromSqlRaw\(\s*\$""",
            title="Interpolated string passed to FromSqlRaw",
            category=Category.SECURITY,
            detail="FromSqlRaw does not parameterize interpolated values.",
            suggestion="Use FromSqlInterpolated or pass parameters explicitly.",
            confidence=90,
            file_globs=("*.cs",),
        ),
        LineRule(
            pattern=r"""ServerCertificateCustomValidationCallback\s*=.*=>\s*true""",
            title="TLS certificate validation disabled",
            category=Category.SECURITY,
            detail="Every server certificate is accepted, enabling man-in-the-middle attacks.",
            suggestion="Remove the callback or validate the certificate chain.",
            confidence=95,
            file_globs=("*.cs",),
            include_tests=False,
        ),
        LineRule(
            pattern=r"""\b(MD5|SHA1)\.Create\(""",
            title="Weak hash algorithm",
            category=Category.SECURITY,
            detail="MD5 and SHA1 are unsuitable for security purposes.",
            suggestion="Use SHA256 or a password hasher such as PBKDF2/Argon2.",
            confidence=70,
            file_globs=("*.cs",),
        ),
        LineRule(
            pattern=r"""bypassSecurityTrust(Html|Script|Style|Url|ResourceUrl)\(""",
            title="Angular sanitization bypassed",
            category=Category.SECURITY,
            detail="DomSanitizer bypass disables XSS protection for this value.",
            suggestion="Sanitize the value or avoid binding untrusted content.",
            confidence=80,
            file_globs=("*.ts",),
        ),
        LineRule(
            pattern=r"""\.(innerHTML|outerHTML)\s*=""",
            title="Direct HTML assignment",
            category=Category.SECURITY,
            detail="Assigning HTML strings to the DOM bypasses Angular's sanitizer.",
            suggestion="Use template bindings or Renderer2.",
            confidence=75,
            file_globs=("*.ts", "*.js"),
        ),
        LineRule(
            pattern=r"""(?<![\w.])eval\(""",
            title="Use of eval",
            category=Category.SECURITY,
            detail="eval executes arbitrary code.",
            suggestion="Parse data with JSON.parse or use explicit dispatch.",
            confidence=85,
            file_globs=("*.ts", "*.js"),
        ),
    ]
