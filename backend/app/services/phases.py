"""Construction phase templates and progress rules."""

from typing import NamedTuple

from app.models.enums import PhaseStatus, PhaseTemplateType


class PhaseTemplate(NamedTuple):
    name: str
    phase_type: str
    description: str


PHASE_TEMPLATES: dict[PhaseTemplateType, list[PhaseTemplate]] = {
    PhaseTemplateType.RESIDENTIAL: [
        PhaseTemplate("Pre-Construction", "pre_construction",
                      "Permits, design finalization, site surveys, and pre-construction planning"),
        PhaseTemplate("Site Preparation", "site_prep",
                      "Clearing, grading, excavation, and utility rough-ins"),
        PhaseTemplate("Foundation", "foundation",
                      "Foundation excavation, footings, foundation walls, and waterproofing"),
        PhaseTemplate("Framing", "framing",
                      "Floor systems, wall framing, roof framing, and sheathing"),
        PhaseTemplate("MEP Rough-In", "mep_rough",
                      "Rough plumbing, electrical, and HVAC installation"),
        PhaseTemplate("Exterior Finishes", "exterior",
                      "Siding, windows, doors, roofing, and exterior trim"),
        PhaseTemplate("Insulation & Drywall", "insulation_drywall",
                      "Insulation installation, drywall hanging, taping, and finishing"),
        PhaseTemplate("Interior Finishes", "interior",
                      "Flooring, cabinets, trim, painting, and fixture installation"),
        PhaseTemplate("Final Inspections", "inspections",
                      "Final building inspections and punch list items"),
        PhaseTemplate("Closeout", "closeout",
                      "Certificate of occupancy, final cleaning, and project handover"),
    ],
    PhaseTemplateType.COMMERCIAL: [
        PhaseTemplate("Design & Permits", "design",
                      "Architectural design, engineering, and permit acquisition"),
        PhaseTemplate("Demolition & Site Work", "demolition",
                      "Existing structure demolition, site clearing, and preparation"),
        PhaseTemplate("Foundation & Structure", "structure",
                      "Foundation, structural steel/concrete, and core systems"),
        PhaseTemplate("MEP Systems", "mep",
                      "Complete mechanical, electrical, and plumbing systems installation"),
        PhaseTemplate("Building Envelope", "envelope",
                      "Exterior walls, windows, roofing, and weatherproofing"),
        PhaseTemplate("Interior Build-Out", "interior",
                      "Interior walls, ceilings, flooring, and finishes"),
        PhaseTemplate("Systems Commissioning", "commissioning",
                      "Testing and balancing of building systems"),
        PhaseTemplate("Substantial Completion", "completion",
                      "Final inspections, punch list, and certificate of occupancy"),
    ],
    PhaseTemplateType.RENOVATION: [
        PhaseTemplate("Planning & Design", "planning",
                      "Design, permits, and planning for renovation work"),
        PhaseTemplate("Demolition", "demolition",
                      "Selective demolition of existing finishes and systems"),
        PhaseTemplate("Structural & Systems", "structural",
                      "Structural modifications and system upgrades"),
        PhaseTemplate("Rough-In Work", "rough_in",
                      "New plumbing, electrical, and HVAC rough-in"),
        PhaseTemplate("Finishes", "finishes",
                      "Drywall, flooring, cabinets, and finish work"),
        PhaseTemplate("Completion", "completion",
                      "Final inspections, testing, and project closeout"),
    ],
}


def get_phase_template(template_type: PhaseTemplateType) -> list[PhaseTemplate]:
    return PHASE_TEMPLATES[template_type]


def derive_phase_status(progress: int) -> PhaseStatus:
    """0 -> planned, 100 -> complete, anything between -> in-progress."""
    if progress <= 0:
        return PhaseStatus.PLANNED
    if progress >= 100:
        return PhaseStatus.COMPLETE
    return PhaseStatus.IN_PROGRESS
