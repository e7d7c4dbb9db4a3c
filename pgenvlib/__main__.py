"""
Manage a local PostgreSQL server and its project databases.

Usage:
    pgenv [--debug] service (toggle | status)
    pgenv [--debug] db create NAME [--env-dir=DIR]
    pgenv [--debug] db list [--with-connections]
    pgenv [--debug] db backup NAME [--dir=DIR]
    pgenv (-h | --help)

Options:
    --env-dir=DIR       Also write connection details to DIR/.env.NAME.
    --with-connections  Show a connection URI template for each database.
    --dir=DIR           Directory for backup artifacts, instead of the configured one.
    --debug             Log external commands and queries.
"""

from docopt import docopt

from pgenvlib.scripts import db, service


def main(argv=None):
    opts = docopt(__doc__, argv)
    if opts["service"]:
        return (service.toggle if opts["toggle"] else service.status)(opts)
    elif opts["create"]:
        return db.create(opts)
    elif opts["list"]:
        return db.list_(opts)
    else:
        return db.backup(opts)


if __name__ == "__main__":
    main()
