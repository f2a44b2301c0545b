import sys

from prepper.pipeline import main

sys.exit(main())
