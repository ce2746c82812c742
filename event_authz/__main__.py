import sys

from event_authz.cli import main

sys.exit(main())
