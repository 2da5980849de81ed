"""Grant the ``admin`` custom claim to a Firebase user."""

import argparse

from bidnthrift.auth import FirebaseAuth
from bidnthrift.config import get_server_config
from bidnthrift.logging import configure_logging


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("uid", help="Firebase user id to promote")
    args = parser.parse_args()

    config = get_server_config()
    configure_logging(config.log_level)
    FirebaseAuth(config.auth).set_admin_claim(args.uid)


if __name__ == "__main__":
    main()
