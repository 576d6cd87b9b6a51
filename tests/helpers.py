from projectdash import schemas


def make_project(name="Alpha", **fields):
    return schemas.ProjectCreate(name=name, **fields)


def make_task(name="Write report", due_date="2023-05-15", **fields):
    return schemas.TaskCreate(name=name, due_date=due_date, **fields)


def make_milestone(name="Launch", due_date="2023-06-30", **fields):
    return schemas.MilestoneCreate(name=name, due_date=due_date, **fields)
