from archdeps.cli import main

main()
