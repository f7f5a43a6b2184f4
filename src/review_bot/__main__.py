from review_bot.cli import main

main()
