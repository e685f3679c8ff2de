from invoke import task


@task
def lint(c):
    c.run("ruff check .")


@task
def format_check(c):
    c.run("ruff format --check .")


@task
def test(c):
    c.run("pytest")


@task
def seed_demo(c, config="config.yaml", catalog="catalog.yaml"):
    c.run(f"film-arena seed {config} {catalog}")


@task
def ci(c):
    lint(c)
    format_check(c)
    test(c)
