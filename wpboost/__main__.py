from wpboost.cli import main

main()
