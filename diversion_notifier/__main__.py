from diversion_notifier.bot import cli


cli(prog_name='diversion-notifier')
