"""Fixed sample data written through the storage interface.

Both backends share this set; the in-memory backend seeds on construction and
the relational backend seeds once when it finds an empty store.
"""
import logging

from . import schemas
from .security import hash_password

logger = logging.getLogger(__name__)

ADMIN_USERNAME = "admin"


def seed_sample_data(storage) -> bool:
    """Populate ``storage`` unless the admin user already exists. Returns True if seeded."""
    if storage.get_user_by_username(ADMIN_USERNAME):
        logger.info("Sample data already present, skipping seed")
        return False

    admin = storage.create_user(schemas.UserCreate(
        username=ADMIN_USERNAME,
        password=hash_password("password"),
        name="Admin User",
        email="admin@example.com",
        initial="A",
        avatar_color="bg-blue-500",
    ))

    alpha = storage.create_project(schemas.ProjectCreate(
        name="Website Redesign",
        progress=65,
        status="On Track",
        description="Complete overhaul of the company website with new branding and improved user experience.",
        start_date="2023-04-01",
        end_date="2023-07-15",
        manager_id=admin.id,
        budget=75000,
    ))
    beta = storage.create_project(schemas.ProjectCreate(
        name="Mobile App Development",
        progress=30,
        status="At Risk",
        description="Creating a native mobile application for both iOS and Android platforms.",
        start_date="2023-03-15",
        end_date="2023-06-30",
        manager_id=admin.id,
        budget=120000,
    ))
    gamma = storage.create_project(schemas.ProjectCreate(
        name="Cloud Migration",
        progress=10,
        status="On Track",
        description="Migrating on-premise infrastructure to cloud-based solutions for improved scalability.",
        start_date="2023-05-01",
        end_date="2023-09-30",
        manager_id=admin.id,
        budget=200000,
    ))
    delta = storage.create_project(schemas.ProjectCreate(
        name="CRM Implementation",
        progress=90,
        status="Behind",
        description="Implementing a new Customer Relationship Management system across the organization.",
        start_date="2023-02-15",
        end_date="2023-05-30",
        manager_id=admin.id,
        budget=85000,
    ))
    epsilon = storage.create_project(schemas.ProjectCreate(
        name="Marketing Campaign",
        progress=45,
        status="On Track",
        description="Planning and executing a comprehensive digital marketing campaign for Q2.",
        start_date="2023-04-15",
        end_date="2023-08-30",
        manager_id=admin.id,
        budget=50000,
    ))
    projects = [alpha, beta, gamma, delta, epsilon]

    named_tasks = [
        ("Market Research & Requirements", "Conduct market research and gather requirements from stakeholders.",
         "2023-04-01", "2023-04-10", True),
        ("Design UI/UX", "Create wireframes and design mockups for the new website.",
         "2023-04-11", "2023-04-25", True),
        ("Frontend Development", "Implement the new design using React and Tailwind CSS.",
         "2023-04-26", "2023-05-15", False),
        ("Backend Integration", "Connect frontend to backend services and APIs.",
         "2023-05-10", "2023-05-30", False),
    ]
    for name, description, start_date, due_date, completed in named_tasks:
        storage.create_task(schemas.TaskCreate(
            name=name,
            description=description,
            start_date=start_date,
            due_date=due_date,
            completed=completed,
            project_id=alpha.id,
            assignee_id=admin.id,
        ))
    for i in range(16):
        storage.create_task(schemas.TaskCreate(
            name=f"Task {i + 5}",
            description=f"Description for task {i + 5}",
            start_date="2023-05-01",
            due_date="2023-05-15",
            completed=i % 3 == 0,
            project_id=projects[i % 5].id,
            assignee_id=admin.id,
        ))

    milestones = [
        ("Design Phase Complete", "Completion of all design work including UI/UX and prototypes.",
         "2023-04-30", True, alpha),
        ("MVP Launch", "Launch of minimum viable product to selected users.", "2023-06-15", False, alpha),
        ("Design Approval", "Approval of final app designs by stakeholders.", "2023-04-20", True, beta),
        ("Beta Testing", "Start of beta testing phase with selected users.", "2023-05-30", False, beta),
        ("Migration Plan Approval", "Approval of detailed migration plan by leadership.",
         "2023-06-15", False, gamma),
        ("Go-Live", "Full deployment of CRM to all departments.", "2023-05-30", False, delta),
    ]
    for name, description, due_date, completed, project in milestones:
        storage.create_milestone(schemas.MilestoneCreate(
            name=name,
            description=description,
            due_date=due_date,
            completed=completed,
            project_id=project.id,
        ))

    insights = [
        ("Mobile App Development is at risk due to delayed API development. "
         "Recommend allocating additional resources.", beta, "warning"),
        ("Website Redesign has completed 65% of tasks ahead of schedule. "
         "Project is on track for early completion.", alpha, "info"),
        ("CRM Implementation is behind schedule and requires immediate attention to meet the deadline.",
         delta, "alert"),
        ("Cloud Migration project has only completed 10% of tasks. "
         "Consider revising the timeline or adding resources.", gamma, "warning"),
        ("Marketing Campaign is progressing as expected with 45% of tasks completed.", epsilon, "info"),
    ]
    for message, project, insight_type in insights:
        storage.create_insight(schemas.InsightCreate(message=message, project_id=project.id, type=insight_type))

    storage.add_team_member(schemas.TeamMemberCreate(project_id=alpha.id, user_id=admin.id, role="Manager"))

    logger.info("Seeded sample data: %d projects, %d tasks", len(projects), len(named_tasks) + 16)
    return True
