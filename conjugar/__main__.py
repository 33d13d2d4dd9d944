"""Allow ``python -m conjugar``."""
from conjugar.ui.app import main

main()
