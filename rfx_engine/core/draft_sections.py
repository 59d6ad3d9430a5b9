"""Section sets for RFI and RFP responses, plus fallback synthesis.

Each section carries the instruction given to the model and a static template
used when the model's text for that section is unusable. Templates only use
facts known structurally (company name, organization name, requested question
categories) and never contain citations.
"""

from dataclasses import dataclass, field

from rfx_engine.core.schemas_summary import ProjectType


@dataclass(frozen=True)
class SectionSpec:
    key: str
    title: str
    instruction: str
    fallback: str

    @property
    def label(self) -> str:
        """Label the model is asked to emit, e.g. EXECUTIVE_SUMMARY."""
        return self.key.upper()


@dataclass
class FallbackFacts:
    """What fallback templates may use."""

    company_name: str | None = None
    organization_name: str = "Your Organization"
    categories: list[str] = field(default_factory=list)


_DEFAULT_CATEGORIES = (
    "Company background and experience",
    "Technical capabilities",
    "Implementation approach",
    "Support and maintenance",
    "Pricing and commercial terms",
)


RFI_SECTIONS: tuple[SectionSpec, ...] = (
    SectionSpec(
        key="introduction",
        title="Introduction",
        instruction=(
            "Write a professional introduction acknowledging their RFI and expressing "
            "our interest in providing information about our solutions."
        ),
        fallback=(
            "{company_or_we} appreciate the opportunity to respond to the Request for "
            "Information issued by {organization}. This response describes our "
            "capabilities, our experience and the value we can bring to your organization."
        ),
    ),
    SectionSpec(
        key="organization_background",
        title="Organization Background",
        instruction=(
            "Provide background about {company}, highlighting our expertise, market "
            "position, and why we are well-suited to address their needs. USE ONLY THE "
            "COMPANY FACTS PROVIDED ABOVE."
        ),
        fallback=(
            "Thank you for the opportunity to respond to your RFI. {company_or_we} "
            "welcome the chance to provide information about our solutions and services."
        ),
    ),
    SectionSpec(
        key="project_scope",
        title="Project Scope",
        instruction=(
            "Demonstrate our understanding of their requirements and how our capabilities "
            "align with what they are seeking to accomplish."
        ),
        fallback=(
            "Based on the RFI, we understand that {organization} is seeking a provider "
            "with proven experience, solutions that scale with its needs, and reliable "
            "integration with existing systems. The sections below describe how we "
            "address each of these areas."
        ),
    ),
    SectionSpec(
        key="information_requested",
        title="Information Requested",
        instruction=(
            "Provide comprehensive responses to the information they have requested, "
            "including our capabilities, experience, technical specifications, and approach."
        ),
        fallback=(
            "We will provide detailed responses in the following areas:\n{category_list}"
        ),
    ),
    SectionSpec(
        key="vendor_qualifications",
        title="Vendor Qualifications",
        instruction=(
            "Detail our qualifications, certifications, experience, and track record that "
            "make us a strong potential partner."
        ),
        fallback=(
            "Our qualifications include:\n"
            "1. Experience delivering comparable solutions\n"
            "2. Technical certifications and vendor partnerships\n"
            "3. Ongoing support capabilities\n"
            "4. References from comparable organizations\n"
            "5. Compliance with applicable industry standards and regulations"
        ),
    ),
    SectionSpec(
        key="submission_requirements",
        title="Submission Requirements",
        instruction=(
            "Confirm our compliance with their submission requirements and provide all "
            "requested documentation and information."
        ),
        fallback=(
            "{company_or_we} will follow the submission requirements set out by "
            "{organization}, respond to every required question, and provide any "
            "supplementary material in clearly labeled appendices."
        ),
    ),
    SectionSpec(
        key="evaluation_criteria",
        title="Evaluation Criteria",
        instruction=(
            "Address how we meet or exceed their evaluation criteria, highlighting our "
            "strengths in each area."
        ),
        fallback=(
            "We understand responses will be evaluated on:\n"
            "1. Completeness and clarity of responses\n"
            "2. Demonstrated understanding of requirements\n"
            "3. Relevant experience and qualifications\n"
            "4. Solution capabilities\n"
            "5. Value-added services"
        ),
    ),
    SectionSpec(
        key="next_steps",
        title="Next Steps",
        instruction=(
            "Express our readiness to move forward, provide additional information, "
            "participate in demos, or advance to the RFP stage."
        ),
        fallback=(
            "We look forward to discussing your requirements in greater detail. We are "
            "prepared to provide additional information, arrange demonstrations, or take "
            "part in a formal RFP process."
        ),
    ),
)


RFP_SECTIONS: tuple[SectionSpec, ...] = (
    SectionSpec(
        key="executive_summary",
        title="Executive Summary",
        instruction=(
            "Write a compelling executive summary that demonstrates our understanding of "
            "their needs and how our solution addresses them."
        ),
        fallback=(
            "{company_or_we} are pleased to submit this proposal in response to the "
            "Request for Proposal issued by {organization}. Our solution is designed to "
            "be reliable, scalable and cost-effective."
        ),
    ),
    SectionSpec(
        key="company_overview",
        title="Company Overview",
        instruction=(
            "Provide a detailed overview of {company}, highlighting our experience, "
            "capabilities, and why we are the best choice for this project. USE ONLY THE "
            "COMPANY FACTS PROVIDED ABOVE."
        ),
        fallback=(
            "{company_or_we} deliver solutions and services with a focus on dependable "
            "implementation and long-term support."
        ),
    ),
    SectionSpec(
        key="project_background",
        title="Project Background",
        instruction=(
            "Demonstrate our understanding of their project, challenges, and objectives "
            "based on the RFP documents."
        ),
        fallback=(
            "We understand that {organization} intends to modernize its current "
            "environment while keeping disruption to operations to a minimum."
        ),
    ),
    SectionSpec(
        key="scope_of_work",
        title="Scope of Work",
        instruction=(
            "Detail our proposed approach to meeting all requirements and specifications "
            "outlined in their RFP."
        ),
        fallback=(
            "Our proposed scope covers design, implementation and ongoing support of the "
            "solution described in the RFP."
        ),
    ),
    SectionSpec(
        key="technical_requirements",
        title="Technical Requirements",
        instruction=(
            "Explain how our solution meets or exceeds each technical requirement they "
            "have specified."
        ),
        fallback=(
            "Our technical approach includes:\n"
            "1. Needs assessment and analysis of the current environment\n"
            "2. Solution design tailored to the stated requirements\n"
            "3. Professional installation and configuration\n"
            "4. Testing and quality assurance\n"
            "5. Training and documentation\n"
            "6. Ongoing support and maintenance"
        ),
    ),
    SectionSpec(
        key="functional_requirements",
        title="Functional Requirements",
        instruction=(
            "Detail how our solution addresses each functional requirement and feature "
            "they need."
        ),
        fallback=(
            "Our solution is intended to meet the functional requirements outlined in "
            "the RFP documents."
        ),
    ),
    SectionSpec(
        key="implementation_approach",
        title="Implementation Approach",
        instruction=(
            "Present our implementation methodology, project phases, and approach to "
            "minimize disruption."
        ),
        fallback=(
            "We follow a phased implementation approach designed to minimize disruption "
            "to operations."
        ),
    ),
    SectionSpec(
        key="timeline_and_milestones",
        title="Timeline and Milestones",
        instruction="Provide our proposed timeline with key milestones and deliverables.",
        fallback=(
            "Proposed phases:\n"
            "Phase 1: Discovery and assessment\n"
            "Phase 2: Solution design\n"
            "Phase 3: Implementation\n"
            "Phase 4: Testing and training\n"
            "Phase 5: Go-live and ongoing support\n"
            "Durations will be confirmed with {organization} during discovery."
        ),
    ),
    SectionSpec(
        key="pricing_structure",
        title="Pricing Structure",
        instruction=(
            "Present our pricing proposal with clear cost breakdowns as requested in "
            "their RFP."
        ),
        fallback=(
            "Pricing will be based on:\n"
            "- Number of users\n"
            "- Feature requirements\n"
            "- Hardware needs\n"
            "- Support level\n"
            "- Contract terms\n"
            "A detailed breakdown will be provided once specific requirements are confirmed."
        ),
    ),
    SectionSpec(
        key="evaluation_criteria",
        title="Evaluation Criteria",
        instruction=(
            "Address each of their evaluation criteria and explain why we excel in each area."
        ),
        fallback=(
            "We have addressed the evaluation criteria in the RFP, including technical "
            "fit, vendor experience, implementation approach, cost and value, and "
            "ongoing support."
        ),
    ),
    SectionSpec(
        key="submission_instructions",
        title="Submission Instructions",
        instruction="Confirm our compliance with their submission requirements.",
        fallback=(
            "{company_or_we} confirm that this proposal follows the submission "
            "instructions issued by {organization}."
        ),
    ),
    SectionSpec(
        key="terms_and_conditions",
        title="Terms and Conditions",
        instruction=(
            "Acknowledge and address their terms while proposing any necessary modifications."
        ),
        fallback=(
            "We acknowledge the terms and conditions of the RFP and are prepared to "
            "discuss them with {organization} during contract negotiation."
        ),
    ),
)


def sections_for(project_type: ProjectType) -> tuple[SectionSpec, ...]:
    return RFI_SECTIONS if project_type == "RFI" else RFP_SECTIONS


def render_instruction(spec: SectionSpec, company_name: str | None) -> str:
    return spec.instruction.format(company=company_name or "our company")


def render_fallback(spec: SectionSpec, facts: FallbackFacts) -> str:
    """Fill one section's fallback template."""
    categories = facts.categories or list(_DEFAULT_CATEGORIES)
    return spec.fallback.format(
        company_or_we=facts.company_name or "We",
        organization=facts.organization_name or "your organization",
        category_list="\n".join(f"- {category}" for category in categories),
    )


def synthesize_fallback(project_type: ProjectType, facts: FallbackFacts) -> dict[str, str]:
    """Complete section map from templates alone, in section order."""
    return {spec.key: render_fallback(spec, facts) for spec in sections_for(project_type)}
