"""Terminal editor for a single todo list, with normal, insert and visual modes."""