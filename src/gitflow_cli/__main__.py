from gitflow_cli import main

main()
