# Copyright 2013 IBM Corp.

import gettext

t = gettext.translation('vcompute-common', fallback=True)


def _(msg):
    return t.gettext(msg)
