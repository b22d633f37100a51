import sys
import os
import logging

# Ensure we can import jobboard modules
sys.path.append(os.getcwd())

from jobboard.core.exceptions import AppException
from jobboard.models.job import JobStatus, JobType
from jobboard.schemas.job import JobInput
from jobboard.session import JobBoardSession

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

SAMPLE_JOBS = [
    {
        "title": "Frontend Engineer",
        "company_name": "Skyline Labs",
        "location": "Remote (US)",
        "job_type": JobType.FULL_TIME,
        "description": "Join a fast-moving product squad to ship polished React experiences and build reusable UI patterns.",
        "overview": "Skyline Labs is scaling the next generation of analytics for product-led teams. As a Frontend Engineer, you will own critical user-facing experiences and collaborate with design on interaction patterns.",
        "responsibilities": [
            "Own and deliver new product surfaces using React, TypeScript, and Tailwind.",
            "Collaborate with design to implement delightful UI interactions and micro-animations.",
            "Improve performance metrics across core flows with thoughtful profiling and optimization.",
        ],
        "requirements": [
            "4+ years building production React or Next.js applications.",
            "Deep knowledge of TypeScript, component composition, and testing practices.",
            "Experience working with design systems and accessibility best practices.",
        ],
        "benefits": [
            "Remote-first team across North American time zones.",
            "Competitive salary with equity in a fast-growing startup.",
            "Yearly learning stipend and home office budget.",
        ],
        "about_company": "Skyline Labs builds analytics software used by product teams to understand how users engage with their experiences.",
        "tags": ["react", "typescript", "remote"],
    },
    {
        "title": "Product Designer",
        "company_name": "Northwind Collective",
        "location": "Seattle, WA",
        "job_type": JobType.FULL_TIME,
        "description": "Lead discovery and craft intuitive flows for web and mobile surfaces alongside research and engineering.",
        "overview": "Northwind Collective is refreshing how teams coordinate field operations. You'll translate customer insights into elegant, high-utility experiences.",
        "responsibilities": [
            "Run design discovery and translate insights into storyboards, flows, and high-fidelity mocks.",
            "Maintain and evolve our design system with reusable patterns and documentation.",
            "Participate in user interviews, usability testing, and iterative design reviews.",
        ],
        "requirements": [
            "Portfolio showcasing end-to-end product work with shipped outcomes.",
            "Expertise in Figma, prototyping, and delivering developer-ready assets.",
        ],
        "benefits": [
            "Hybrid schedule with a downtown Seattle studio.",
            "401(k) with company match, commuter benefits, and generous PTO.",
        ],
        "about_company": "Northwind Collective builds connected tools for logistics and operations teams.",
        "tags": ["design", "figma"],
    },
    {
        "title": "Platform Engineer",
        "company_name": "TrussWorks",
        "location": "Berlin, Germany",
        "job_type": JobType.CONTRACT,
        "description": "Strengthen our infrastructure layer, own CI/CD pipelines, and collaborate on reliability initiatives.",
        "overview": "TrussWorks powers commerce for modern consumer brands. Join our core infrastructure pod on a contract basis.",
        "responsibilities": [
            "Design and maintain CI/CD pipelines supporting dozens of weekly deployments.",
            "Instrument services with improved logging, tracing, and metrics visibility.",
            "Drive on-call readiness, incident reviews, and resilience initiatives.",
        ],
        "requirements": [
            "5+ years working across platform, DevOps, or SRE roles.",
            "Hands-on experience with Terraform, AWS, and CI tools like GitHub Actions.",
        ],
        "benefits": [
            "6-month contract with potential to convert to full-time.",
            "Flexible hours with a distributed team across CET and GMT.",
        ],
        "about_company": "TrussWorks delivers cloud infrastructure and data tooling for direct-to-consumer brands.",
        "tags": ["devops", "terraform", "aws"],
    },
    {
        "title": "Customer Success Manager",
        "company_name": "FlowState",
        "location": "Austin, TX",
        "job_type": JobType.PART_TIME,
        "description": "Partner with growth-stage customers to onboard teams, surface insights, and influence the roadmap.",
        "overview": "FlowState helps hybrid teams align on projects and ship with confidence.",
        "responsibilities": [
            "Manage a portfolio of mid-market accounts and craft tailored success plans.",
            "Lead onboarding sessions, QBRs, and training workshops for customer teams.",
        ],
        "requirements": [
            "3+ years in Customer Success or Account Management within B2B SaaS.",
            "Strong facilitation skills and genuine empathy for end-users.",
        ],
        "benefits": [
            "Part-time (25 hrs/week) with flexible scheduling.",
            "Wellness stipend and paid vacation proportional to hours worked.",
        ],
        "about_company": "FlowState is a venture-backed startup building collaboration software for distributed product teams.",
        "tags": ["saas", "customer-success"],
    },
    {
        "title": "Marketing Strategist",
        "company_name": "Beacon Media",
        "location": "New York, NY",
        "job_type": JobType.CONTRACT,
        "description": "Own multi-channel launch plans, collaborate with creative, and measure impact on acquisition metrics.",
        "overview": "Beacon Media is an agency helping creative brands launch bigger campaigns.",
        "responsibilities": [
            "Develop and present integrated campaign strategies across paid, owned, and earned media.",
            "Analyze performance data to surface insights and optimize spend across channels.",
        ],
        "requirements": [
            "5+ years in marketing strategy or campaign planning roles.",
            "Ability to synthesize complex data into clear storytelling for clients.",
        ],
        "benefits": [
            "Initial 9-month contract with opportunity for extension.",
            "Hybrid schedule with 3 days/wk in our Flatiron studio.",
        ],
        "about_company": "Beacon Media supports purpose-driven consumer brands with strategy, creative, and performance marketing.",
        "tags": ["marketing", "agency"],
    },
]


def seed_jobs():
    email = os.getenv("SEED_EMAIL")
    password = os.getenv("SEED_PASSWORD")
    if not email or not password:
        logger.error("Set SEED_EMAIL and SEED_PASSWORD to the hiring account that should own the listings.")
        sys.exit(1)

    try:
        with JobBoardSession.from_settings() as board:
            board.sign_in(email, password)
            first = board.manage(page=1)
            existing = {job.title for job in first.items}
            for page in range(2, first.total_pages + 1):
                existing.update(job.title for job in board.manage(page=page).items)

            for sample in SAMPLE_JOBS:
                if sample["title"] in existing:
                    logger.warning(f"Listing '{sample['title']}' already exists. Skipping.")
                    continue
                job = board.create_job(JobInput(job_status=JobStatus.PUBLISHED, **sample))
                logger.info(f"Created {job.job_status.value} -> /jobs/{job.slug}")
            board.sign_out()
    except AppException as e:
        logger.error(f"Seeding failed: {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    seed_jobs()
