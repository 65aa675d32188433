"""Tests for confidence scoring."""

import pytest


class TestScoreFinding:
    """Tests for the deterministic rubric."""

    def test_added_line_keeps_raw_confidence(self, sample_change_set, empty_context, make_finding):
        """Test a finding on an added line keeps its raw confidence."""
        from local_review.orchestrator.scorer import score_finding

        assert score_finding(make_finding(), sample_change_set, empty_context) == 85

    def test_pre_existing_line_is_false_positive(
        self, sample_change_set, empty_context, make_finding
    ):
        """Test a finding on an unchanged line scores 0."""
        from local_review.orchestrator.scorer import score_finding

        finding = make_finding(line_number=10)

        assert score_finding(finding, sample_change_set, empty_context) == 0

    def test_file_outside_change_set(self, sample_change_set, empty_context, make_finding):
        """Test a finding in an unchanged file scores 0."""
        from local_review.orchestrator.scorer import score_finding

        finding = make_finding(file_path="src/Untouched.cs")

        assert score_finding(finding, sample_change_set, empty_context) == 0

    def test_deleted_file(self, sample_change_set, empty_context, make_finding):
        """Test a finding in a deleted file scores 0."""
        from local_review.orchestrator.scorer import score_finding

        finding = make_finding(file_path="src/Old.cs", line_number=1)

        assert score_finding(finding, sample_change_set, empty_context) == 0

    def test_best_practice_caps(self, sample_change_set, empty_context, make_finding):
        """Test best-practice findings are capped as nitpicks."""
        from local_review.models.findings import Category
        from local_review.orchestrator.scorer import MINOR, PLAUSIBLE, score_finding

        nit = make_finding(category=Category.BEST_PRACTICE, raw_confidence=90)
        style = make_finding(category=Category.BEST_PRACTICE, raw_confidence=90, stylistic=True)

        assert score_finding(nit, sample_change_set, empty_context) == MINOR
        assert score_finding(style, sample_change_set, empty_context) == PLAUSIBLE

    def test_missing_line_number_capped(self, sample_change_set, empty_context, make_finding):
        """Test file-level findings cannot be certain."""
        from local_review.orchestrator.scorer import VERIFIED, score_finding

        finding = make_finding(line_number=None, raw_confidence=100)

        assert score_finding(finding, sample_change_set, empty_context) == VERIFIED

    def test_test_files_capped_except_security(self, empty_context, make_finding):
        """Test non-security findings in test code are minor."""
        from local_review.models.changes import ChangeKind, ChangeSet, DiffHunk, FileChange
        from local_review.models.findings import Category
        from local_review.orchestrator.scorer import score_finding

        path = "tests/App.Tests/UserTests.cs"
        change_set = ChangeSet(
            root="/work",
            changes=(
                FileChange(
                    path=path,
                    change_kind=ChangeKind.ADDED,
                    diff_hunks=(DiffHunk(0, 0, 1, 1, added_lines=((1, "x"),)),),
                ),
            ),
        )
        bug = make_finding(file_path=path, line_number=1, category=Category.BUG, raw_confidence=90)
        security = make_finding(file_path=path, line_number=1, raw_confidence=90)

        assert score_finding(bug, change_set, empty_context) == 50
        assert score_finding(security, change_set, empty_context) == 90

    def test_deterministic(self, sample_change_set, empty_context, make_finding):
        """Test identical inputs always give identical scores."""
        from local_review.orchestrator.scorer import score_finding

        finding = make_finding()
        scores = {score_finding(finding, sample_change_set, empty_context) for _ in range(20)}

        assert len(scores) == 1


class TestConfidenceScorer:
    """Tests for ConfidenceScorer."""

    @pytest.mark.asyncio
    async def test_scores_every_finding_in_order(
        self, sample_change_set, empty_context, make_finding
    ):
        """Test nothing is dropped and order is preserved."""
        from local_review.orchestrator.scorer import ConfidenceScorer

        findings = [make_finding(), make_finding(line_number=10), make_finding(line_number=13)]

        scored = await ConfidenceScorer().score_all(findings, sample_change_set, empty_context)

        assert [f.line_number for f in scored] == [12, 10, 13]
        assert [f.confidence for f in scored] == [85, 0, 85]
        assert all(f.is_scored for f in scored)

    @pytest.mark.asyncio
    async def test_scoring_error_gives_zero(self, sample_change_set, empty_context, make_finding):
        """Test a raising score function yields confidence 0."""
        from local_review.orchestrator.scorer import ConfidenceScorer

        def explode(*_args):
            raise RuntimeError("boom")

        scored = await ConfidenceScorer(score_fn=explode).score_all(
            [make_finding()], sample_change_set, empty_context
        )

        assert scored[0].confidence == 0

    @pytest.mark.asyncio
    async def test_out_of_range_score_gives_zero(
        self, sample_change_set, empty_context, make_finding
    ):
        """Test an out-of-range score is treated as a scoring error."""
        from local_review.orchestrator.scorer import ConfidenceScorer

        scored = await ConfidenceScorer(score_fn=lambda *_: 150).score_all(
            [make_finding()], sample_change_set, empty_context
        )

        assert scored[0].confidence == 0

    @pytest.mark.asyncio
    async def test_async_score_function(self, sample_change_set, empty_context, make_finding):
        """Test async scoring functions are awaited."""
        from local_review.orchestrator.scorer import ConfidenceScorer

        async def remote_score(finding, change_set, context):
            return 42

        scored = await ConfidenceScorer(score_fn=remote_score).score_all(
            [make_finding()], sample_change_set, empty_context
        )

        assert scored[0].confidence == 42

    @pytest.mark.asyncio
    async def test_already_scored_untouched(self, sample_change_set, empty_context, make_finding):
        """Test a finding is scored exactly once."""
        from local_review.orchestrator.scorer import ConfidenceScorer

        finding = make_finding().with_confidence(33)

        scored = await ConfidenceScorer().score(finding, sample_change_set, empty_context)

        assert scored is finding


class TestTestFileCap:
    """Tests for the test-code cap on production-looking paths."""

    @pytest.mark.parametrize(
        "path",
        [
            "src/Specials/PriceCalculator.cs",
            "src/Feeds/Latest.cs",
            "src/Testimonials/Widget.cs",
            "src/app/species.service.ts",
        ],
    )
    def test_production_paths_not_capped(self, empty_context, make_finding, path):
        """Test production files whose names resemble test markers keep their score."""
        from local_review.models.changes import ChangeKind, ChangeSet, DiffHunk, FileChange
        from local_review.models.findings import Category
        from local_review.orchestrator.scorer import score_finding

        change_set = ChangeSet(
            root="/work",
            changes=(
                FileChange(
                    path=path,
                    change_kind=ChangeKind.MODIFIED,
                    diff_hunks=(DiffHunk(1, 1, 1, 1, added_lines=((1, "x"),)),),
                ),
            ),
        )
        bug = make_finding(file_path=path, line_number=1, category=Category.BUG, raw_confidence=90)

        assert score_finding(bug, change_set, empty_context) == 90
