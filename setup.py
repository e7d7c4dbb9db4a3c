import os.path

from setuptools import find_packages, setup

try:
    # Import all script providers so that ENTRYPOINTS gets populated.
    from pgenvlib.scripts import db, service  # noqa: F401
    from pgenvlib.scripts.utils import ENTRYPOINTS
except ImportError:
    # Avoid chicken-and-egg dependency requirements during initial installation.
    # This means you need to re-run setup in order to gain script entrypoints.
    ENTRYPOINTS = []


README = os.path.join(os.path.abspath(os.path.dirname(__file__)), "README.rst")


setup(name="pgenv",
      version="1.0.0",
      description="Lifecycle management for a local PostgreSQL server and its project databases.",
      long_description=open(README).read(),
      long_description_content_type="text/x-rst",
      platforms=["Any"],
      python_requires=">=3.6",
      install_requires=["docopt", "jinja2", "psycopg2"],
      extras_require={"test": ["pytest"]},
      packages=find_packages(exclude=["tests", "tests.*"]),
      package_data={"pgenvlib.descriptor": ["templates/*.j2"]},
      entry_points={"console_scripts": ["pgenv=pgenvlib.__main__:main"] + list(ENTRYPOINTS)})
