import sys

from booking_agent_stack.cli import main

sys.exit(main())
