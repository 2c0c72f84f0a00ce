from share_handoff.main import main

if __name__ == "__main__":
    main()
