"""Tests for phase templates and progress-derived status."""

import pytest
from pydantic import ValidationError

from app.models.enums import PhaseStatus, PhaseTemplateType
from app.schemas.phase import PhaseProgressUpdate, PhaseReorder
from app.services.phases import derive_phase_status, get_phase_template


class TestTemplates:

    @pytest.mark.parametrize(
        "template_type,count",
        [
            (PhaseTemplateType.RESIDENTIAL, 10),
            (PhaseTemplateType.COMMERCIAL, 8),
            (PhaseTemplateType.RENOVATION, 6),
        ],
    )
    def test_template_sizes(self, template_type, count):
        assert len(get_phase_template(template_type)) == count

    def test_residential_order(self):
        names = [t.name for t in get_phase_template(PhaseTemplateType.RESIDENTIAL)]
        assert names[0] == "Pre-Construction"
        assert names[-1] == "Closeout"

    def test_phase_types_unique_within_template(self):
        for template_type in PhaseTemplateType:
            types = [t.phase_type for t in get_phase_template(template_type)]
            assert len(types) == len(set(types))


class TestDeriveStatus:

    @pytest.mark.parametrize(
        "progress,expected",
        [
            (0, PhaseStatus.PLANNED),
            (1, PhaseStatus.IN_PROGRESS),
            (50, PhaseStatus.IN_PROGRESS),
            (99, PhaseStatus.IN_PROGRESS),
            (100, PhaseStatus.COMPLETE),
        ],
    )
    def test_status_from_progress(self, progress, expected):
        assert derive_phase_status(progress) == expected

    def test_status_value_uses_hyphen(self):
        assert derive_phase_status(40).value == "in-progress"


class TestPhaseSchemas:

    @pytest.mark.parametrize("progress", [-1, 101])
    def test_progress_bounds(self, progress):
        with pytest.raises(ValidationError):
            PhaseProgressUpdate(progress=progress)

    def test_reorder_needs_ids(self):
        with pytest.raises(ValidationError):
            PhaseReorder(phase_ids=[])
